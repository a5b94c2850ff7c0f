"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - inference_config: Config with a test key and a three-model roster
    - upstream: Fake Gemini API served through httpx.MockTransport
    - direct_service: InferenceService wired to the fake upstream
    - relay_app / async_client: Relay app using direct_service, and an ASGI client for it
    - document / sample_pdf_bytes: Document fixtures

Implements async fixtures with proper cleanup.
"""

import io
import json
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Iterable

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pypdf import PdfWriter

from doclink.api.app import create_app
from doclink.api.routes import get_relay_service
from doclink.inference.config import InferenceConfig
from doclink.inference.service import InferenceService, build_inference_service
from doclink.models.domain import DocumentPayload


def gemini_frame(text: str) -> str:
    """One Gemini streaming frame carrying ``text``."""
    payload = {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}
    return f"data: {json.dumps(payload)}\r\n\r\n"


async def _aiter(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


class UpstreamStub:
    """Fake Gemini API keyed by model identifier.

    Each model maps to a factory producing a fresh httpx.Response per call.
    Calls are recorded in order so tests can assert which models were tried.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: list[str] = []
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        model = request.url.path.rsplit("/", 1)[-1].split(":", 1)[0]
        self.calls.append(model)
        self.requests.append(request)
        route = self.routes.get(model)
        if route is None:
            return httpx.Response(404, text=f"unknown model {model}")
        return route(request)

    def rate_limit(self, model: str) -> None:
        self.routes[model] = lambda request: httpx.Response(
            429, json={"error": {"code": 429, "status": "RESOURCE_EXHAUSTED"}}
        )

    def fail(self, model: str, status_code: int, text: str) -> None:
        self.routes[model] = lambda request: httpx.Response(status_code, text=text)

    def stream(self, model: str, *texts: str, done: bool = False) -> None:
        body = "".join(gemini_frame(text) for text in texts)
        if done:
            body += "data: [DONE]\n\n"
        self.stream_chunks(model, [body.encode()])

    def stream_chunks(self, model: str, chunks: list[bytes]) -> None:
        self.routes[model] = lambda request: httpx.Response(
            200,
            headers={"content-type": "text/event-stream"},
            content=_aiter(chunks),
        )

    def reply(self, model: str, payload: dict) -> None:
        self.routes[model] = lambda request: httpx.Response(200, json=payload)

    def disconnect(self, model: str) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        self.routes[model] = refuse


@pytest.fixture
def inference_config() -> InferenceConfig:
    """Config with a test key and roster [model-a, model-b, model-c]."""
    return InferenceConfig(
        api_key="test-key",
        base_url="https://gemini.test",
        primary_model="model-a",
        fallback_models=["model-b", "model-c"],
        speech_model="tts-model",
        transport_mode="direct",
        relay_url="http://relay.test",
        cors_origins=["*"],
    )


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
async def direct_service(
    inference_config: InferenceConfig, upstream: UpstreamStub
) -> AsyncGenerator[InferenceService]:
    """InferenceService calling the fake upstream directly."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    service = build_inference_service(inference_config, client=client)
    yield service
    await client.aclose()


@pytest.fixture
def relay_app(
    inference_config: InferenceConfig, direct_service: InferenceService
) -> FastAPI:
    """Relay application whose upstream is the fake Gemini API."""
    application = create_app(inference_config)
    application.dependency_overrides[get_relay_service] = lambda: direct_service
    return application


@pytest.fixture
async def async_client(relay_app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for relay testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=relay_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def document() -> DocumentPayload:
    return DocumentPayload(data=b"%PDF-1.4 fake document body", mime_type="application/pdf")


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """A valid two-page PDF generated with pypdf."""
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
