"""Caller-facing inference service.

Wires request building, fallback, transport and stream decoding behind three
operations: stream an answer about a document, summarize a document, and
synthesize speech. The same service runs in the browser-facing process
(direct or relayed transport) and inside the relay itself (direct transport).

Streaming contract:
    ``stream_answer`` is an async generator of StreamEvents. Failures that
    happen before the first text delta (missing key, every model rate limited,
    upstream error) are raised as InferenceError subclasses. Once text has been
    delivered it is never retracted, and later failures arrive as one final
    ``error`` event instead of an exception. Closing the generator early closes
    the upstream response.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from typing import Any

import httpx

from doclink.inference.config import InferenceConfig, get_inference_config
from doclink.inference.errors import EmptyResponseError, StreamInterruptedError, error_from_code
from doclink.inference.fallback import FallbackOrchestrator
from doclink.inference.request_builder import (
    build_analysis_request,
    build_chat_request,
    build_speech_request,
)
from doclink.inference.roster import ModelRoster
from doclink.inference.sse import candidate_text, reframe_stream
from doclink.inference.transport import GeminiTransport, RelayTransport, Transport
from doclink.models.domain import ConversationTurn, DocumentPayload, StreamEvent, StreamEventKind

logger = logging.getLogger(__name__)


def _response_audio(payload: dict[str, Any]) -> str | None:
    if not isinstance(payload, dict):
        return None
    if isinstance(payload.get("audio"), str):
        return payload["audio"]
    try:
        return payload["candidates"][0]["content"]["parts"][0]["inlineData"]["data"]
    except (KeyError, IndexError, TypeError):
        return None


def _response_text(payload: dict[str, Any]) -> str:
    if not isinstance(payload, dict):
        return ""
    if isinstance(payload.get("text"), str):
        return payload["text"]
    return candidate_text(payload)


class InferenceService:
    """Streaming document Q&A over a fallback roster."""

    def __init__(
        self,
        config: InferenceConfig,
        transport: Transport,
        roster: ModelRoster,
        speech_roster: ModelRoster,
    ) -> None:
        self._config = config
        self._transport = transport
        self._chat = FallbackOrchestrator(roster, transport)
        self._speech = FallbackOrchestrator(speech_roster, transport)

    @property
    def config(self) -> InferenceConfig:
        return self._config

    @property
    def roster(self) -> ModelRoster:
        return self._chat.roster

    def ensure_ready(self) -> None:
        """Raise MissingCredentialError if no call can be made."""
        self._transport.ensure_ready()

    async def stream_answer(
        self,
        document: DocumentPayload,
        question: str,
        history: Sequence[ConversationTurn] = (),
        use_search: bool = False,
    ) -> AsyncIterator[StreamEvent]:
        """Stream an answer to ``question`` about ``document``.

        Args:
            document: The uploaded document.
            question: The user's question.
            history: Prior turns in chronological order; not modified.
            use_search: Allow web-search grounding.

        Yields:
            ``text`` events in arrival order, then at most one ``error`` event.

        Raises:
            InferenceError: A failure before any text was delivered.
        """
        self.ensure_ready()
        request = build_chat_request(
            history,
            question,
            document,
            use_search=use_search,
            temperature=self._config.temperature,
        )
        outcome = await self._chat.run(request, streaming=True)
        response: httpx.Response = outcome.handle

        delivered = False
        try:
            async with aclosing(reframe_stream(response.aiter_bytes())) as events:
                async for event in events:
                    if event.kind is StreamEventKind.ERROR:
                        if not delivered:
                            raise error_from_code(event.code, event.message)
                        logger.warning(f"Upstream error after partial answer: {event.message}")
                        yield event
                        return
                    delivered = True
                    yield event
        except httpx.RequestError as e:
            logger.warning(f"Stream from {outcome.model.identifier} interrupted: {e!r}")
            error = StreamInterruptedError()
            yield StreamEvent.error(error.message, code=error.code)
        finally:
            await response.aclose()

    async def analyze_document(self, document: DocumentPayload) -> str:
        """Return a short summary of ``document`` (single-shot call)."""
        self.ensure_ready()
        outcome = await self._chat.run(build_analysis_request(document), streaming=False)
        return _response_text(outcome.handle)

    async def synthesize_speech(self, text: str) -> str:
        """Return base64-encoded PCM audio of ``text`` read aloud.

        Raises:
            EmptyResponseError: The response carried no audio.
        """
        self.ensure_ready()
        request = build_speech_request(text, voice=self._config.speech_voice)
        outcome = await self._speech.run(request, streaming=False)
        audio = _response_audio(outcome.handle)
        if not audio:
            raise EmptyResponseError("No audio data received")
        return audio

    async def aclose(self) -> None:
        await self._transport.aclose()


def build_inference_service(
    config: InferenceConfig | None = None,
    client: httpx.AsyncClient | None = None,
    transport_mode: str | None = None,
) -> InferenceService:
    """Create a service for the configured transport.

    Args:
        config: Configuration; loaded from environment if not provided.
        client: Optional shared httpx client.
        transport_mode: Overrides ``config.transport_mode``.

    Returns:
        A service calling Gemini directly, or a relay with a one-entry roster.
    """
    config = config or get_inference_config()
    mode = transport_mode or config.transport_mode

    if mode == "relay":
        transport: Transport = RelayTransport(config.relay_url, client=client, timeout=config.timeout)
        roster = ModelRoster.of(config.relay_url)
        speech_roster = roster
    else:
        transport = GeminiTransport(
            config.api_key,
            base_url=config.base_url,
            api_version=config.api_version,
            client=client,
            timeout=config.timeout,
        )
        roster = ModelRoster.from_config(config)
        speech_roster = ModelRoster.of(config.speech_model)

    logger.info(f"Inference service using {mode} transport, roster {roster!r}")
    return InferenceService(config, transport, roster, speech_roster)


# Module-level instances, one per transport mode
_services: dict[str, InferenceService] = {}


def get_inference_service(transport_mode: str | None = None) -> InferenceService:
    """Get or create the shared service for a transport mode.

    Returns:
        The InferenceService instance.
    """
    mode = transport_mode or get_inference_config().transport_mode
    if mode not in _services:
        _services[mode] = build_inference_service(transport_mode=mode)
    return _services[mode]


async def close_inference_services() -> None:
    """Close and forget every shared service."""
    while _services:
        _, service = _services.popitem()
        await service.aclose()
