"""HTTP transports for generation requests.

A transport performs exactly one outbound call per ``send`` and classifies the
result into a RequestOutcome. It never raises for upstream failures: network
errors and non-2xx statuses become ``other_failure`` outcomes (or
``rate_limited`` for HTTP 429) so the fallback orchestrator can decide what to
do next.

Two interchangeable implementations exist:

- GeminiTransport calls the Gemini REST API directly.
- RelayTransport calls a doclink relay, which runs its own fallback upstream.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from doclink.inference.errors import MissingCredentialError
from doclink.inference.request_builder import GenerateRequest, RequestKind
from doclink.models.domain import ModelCandidate, OutcomeStatus, RequestOutcome

logger = logging.getLogger(__name__)

# Upstream bodies are kept for diagnostics only.
_MAX_ERROR_TEXT = 2000


class Transport(ABC):
    """Sends one request to one model candidate."""

    def ensure_ready(self) -> None:
        """Raise if the transport cannot make calls at all."""

    @abstractmethod
    async def send(
        self,
        candidate: ModelCandidate,
        request: GenerateRequest,
        streaming: bool,
    ) -> RequestOutcome:
        """Perform one call.

        Args:
            candidate: Model to call.
            request: Built request.
            streaming: Return an open byte stream instead of parsed JSON.

        Returns:
            The classified outcome. For ok streaming outcomes the handle is an
            open httpx.Response the caller must close.
        """

    async def aclose(self) -> None:
        """Release pooled connections."""


class HttpTransport(Transport):
    """Shared httpx plumbing and status classification."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 120.0) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @abstractmethod
    def _url(self, candidate: ModelCandidate, request: GenerateRequest, streaming: bool) -> str:
        ...

    def _params(self, streaming: bool) -> dict[str, str]:
        return {}

    @abstractmethod
    def _payload(self, request: GenerateRequest) -> dict[str, Any]:
        ...

    async def send(
        self,
        candidate: ModelCandidate,
        request: GenerateRequest,
        streaming: bool,
    ) -> RequestOutcome:
        http_request = self._client.build_request(
            "POST",
            self._url(candidate, request, streaming),
            params=self._params(streaming),
            json=self._payload(request),
            headers={"Accept": "text/event-stream" if streaming else "application/json"},
        )

        try:
            response = await self._client.send(http_request, stream=streaming)
        except httpx.RequestError as e:
            logger.warning(f"Network error calling {candidate.identifier}: {e!r}")
            return RequestOutcome(
                model=candidate,
                status=OutcomeStatus.OTHER_FAILURE,
                error_text=f"{type(e).__name__}: {e}",
            )

        if response.is_success:
            if streaming:
                return RequestOutcome(
                    model=candidate,
                    status=OutcomeStatus.OK,
                    handle=response,
                    status_code=response.status_code,
                )
            try:
                data = response.json()
            except ValueError:
                return RequestOutcome(
                    model=candidate,
                    status=OutcomeStatus.OTHER_FAILURE,
                    status_code=response.status_code,
                    error_text=f"Invalid JSON response: {response.text[:_MAX_ERROR_TEXT]}",
                )
            return RequestOutcome(
                model=candidate,
                status=OutcomeStatus.OK,
                handle=data,
                status_code=response.status_code,
            )

        error_text = await self._read_error_text(response)
        status = (
            OutcomeStatus.RATE_LIMITED
            if response.status_code == httpx.codes.TOO_MANY_REQUESTS
            else OutcomeStatus.OTHER_FAILURE
        )
        return RequestOutcome(
            model=candidate,
            status=status,
            status_code=response.status_code,
            error_text=error_text,
        )

    async def _read_error_text(self, response: httpx.Response) -> str:
        try:
            await response.aread()
            return response.text[:_MAX_ERROR_TEXT]
        except httpx.HTTPError as e:
            return f"HTTP {response.status_code} (body unavailable: {e})"
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class GeminiTransport(HttpTransport):
    """Calls ``generateContent`` / ``streamGenerateContent`` on the Gemini API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com",
        api_version: str = "v1beta",
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._api_version = api_version

    def ensure_ready(self) -> None:
        if not self._api_key:
            raise MissingCredentialError()

    def _url(self, candidate: ModelCandidate, request: GenerateRequest, streaming: bool) -> str:
        method = "streamGenerateContent" if streaming else "generateContent"
        return f"{self._base_url}/{self._api_version}/models/{candidate.identifier}:{method}"

    def _params(self, streaming: bool) -> dict[str, str]:
        if streaming:
            return {"alt": "sse", "key": self._api_key}
        return {"key": self._api_key}

    def _payload(self, request: GenerateRequest) -> dict[str, Any]:
        return request.body


class RelayTransport(HttpTransport):
    """Calls a doclink relay that fronts the Gemini API.

    The candidate identifier is ignored: the relay applies its own roster.
    """

    _PATHS = {
        RequestKind.CHAT: "/api/chat",
        RequestKind.ANALYSIS: "/api/analyze",
        RequestKind.SPEECH: "/api/tts",
    }

    def __init__(
        self,
        relay_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self._relay_url = relay_url.rstrip("/")

    def _url(self, candidate: ModelCandidate, request: GenerateRequest, streaming: bool) -> str:
        return f"{self._relay_url}{self._PATHS[request.kind]}"

    def _payload(self, request: GenerateRequest) -> dict[str, Any]:
        return request.relay_body
