"""Relay application factory.

Builds the FastAPI app that holds the provider credential, wires the relay
router, and releases pooled upstream connections on shutdown.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from doclink import __version__
from doclink.api.routes import get_relay_service
from doclink.api.routes import router as relay_router
from doclink.inference.config import InferenceConfig, get_inference_config
from doclink.inference.errors import MissingCredentialError
from doclink.inference.service import InferenceService, close_inference_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Log the active roster on startup and close upstream clients on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control to the application while it runs.
    """
    config: InferenceConfig = app.state.config
    roster = [config.primary_model, *config.fallback_models]
    logger.info(f"Doclink relay up, roster: {' -> '.join(roster)}")
    if not config.has_api_key:
        logger.warning("GEMINI_API_KEY is not set; relay calls will fail with 500")
    yield
    await close_inference_services()
    logger.info("Doclink relay stopped, upstream connections closed")


def create_app(config: InferenceConfig | None = None) -> FastAPI:
    """Create the relay application.

    Args:
        config: Configuration; loaded from environment if not provided.
            Only the CORS policy and startup logging read it. Request handlers
            get their service through ``get_relay_service``.

    Returns:
        Configured FastAPI application instance.
    """
    config = config or get_inference_config()

    application = FastAPI(
        title="Doclink Relay API",
        description=(
            "Streaming relay for document Q&A against the Gemini API. "
            "Holds the provider credential server-side, retries across a roster "
            "of fallback models on rate limits, and re-streams answers as "
            "server-sent events."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    application.state.config = config

    # Wildcard origins cannot be combined with credentials
    wildcard = "*" in config.cors_origins
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else config.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    application.include_router(relay_router)

    @application.exception_handler(MissingCredentialError)
    async def missing_credential_handler(
        request: Request, exc: MissingCredentialError
    ) -> JSONResponse:
        logger.error(f"No API key found in environment, rejecting {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message},
        )

    @application.get("/health")
    async def health_check(
        service: InferenceService = Depends(get_relay_service),
    ) -> dict[str, str | bool]:
        """Report liveness and whether upstream calls can be made."""
        return {
            "status": "healthy",
            "service": "doclink-relay",
            "primary_model": service.roster.primary.identifier,
            "api_key_configured": service.config.has_api_key,
        }

    return application


app = create_app()
