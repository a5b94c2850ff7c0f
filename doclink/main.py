"""Relay process entry point.

Loads ``.env``, configures logging, and serves the relay with uvicorn on
``HOST``/``PORT``.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Send doclink logs to stdout at ``level``.

    httpx logs every request URL at INFO, and direct Gemini URLs carry the
    API key as a query parameter, so its logger is held at WARNING.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    """Run the relay."""
    import uvicorn

    from doclink.api.app import create_app
    from doclink.inference.config import get_inference_config

    log_level = os.getenv("LOG_LEVEL", "INFO")
    configure_logging(log_level)

    config = get_inference_config()
    if config.transport_mode == "relay":
        # The relay itself always calls the provider; DOCLINK_TRANSPORT only applies to clients
        logger.info("DOCLINK_TRANSPORT=relay ignored by the relay process")

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Serving relay on http://{host}:{port} (docs at /docs)")

    uvicorn.run(create_app(config), host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    main()
