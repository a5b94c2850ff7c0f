"""Server-sent event framing.

Decoding turns an upstream byte stream into StreamEvents: bytes are decoded
incrementally, split on newlines, and any trailing partial line is carried
over to the next read so a frame split across reads is parsed whole. Only
``data:`` lines are considered. The ``[DONE]`` sentinel ends the stream
without producing an event. A frame that is not valid JSON is skipped and
logged, as is a JSON frame shaped unlike either dialect; the stream continues.

Two frame dialects are understood, so the same decoder serves both
transports:

- Gemini: ``{"candidates": [{"content": {"parts": [{"text": ...}]}}]}``
- doclink relay: ``{"text": ...}`` or ``{"error": ..., "code": ...}``

Encoding is the relay side: one ``data: <json>\\n\\n`` frame per event.
"""

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from contextlib import aclosing
from typing import Any

from doclink.models.domain import StreamEvent, StreamEventKind

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


async def iter_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield complete lines from a byte stream, without line terminators.

    A final line with no trailing newline is yielded when the stream ends.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""

    async for chunk in chunks:
        buffer += decoder.decode(chunk)
        *lines, buffer = buffer.split("\n")
        for line in lines:
            yield line.removesuffix("\r")

    buffer += decoder.decode(b"", final=True)
    if buffer:
        yield buffer.removesuffix("\r")


def _shape_mismatch(value: Any, expected: type) -> bool:
    # Missing fields are normal (e.g. a final frame with only finishReason)
    if value is None or isinstance(value, expected):
        return False
    logger.warning(
        f"Skipping frame with unexpected shape: got {type(value).__name__}, "
        f"expected {expected.__name__}"
    )
    return True


def candidate_text(payload: dict[str, Any]) -> str:
    """Extract the text of the first candidate of a Gemini response.

    Returns an empty string when the payload has no text or is not shaped like
    a Gemini candidate list.
    """
    candidates = payload.get("candidates")
    if _shape_mismatch(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    if _shape_mismatch(first, dict) or not first:
        return ""
    content = first.get("content")
    if _shape_mismatch(content, dict) or not content:
        return ""
    parts = content.get("parts")
    if _shape_mismatch(parts, list) or not parts:
        return ""
    return "".join(
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str) and not part.get("thought")
    )


def decode_frame(payload: Any) -> StreamEvent | None:
    """Map one parsed frame to an event, or None if it carries no text."""
    if not isinstance(payload, dict):
        return None

    if "error" in payload:
        error = payload["error"]
        if isinstance(error, dict):
            # Gemini error object: {"code": 429, "message": ..., "status": ...}
            return StreamEvent.error(str(error.get("message") or error))
        code = payload.get("code")
        return StreamEvent.error(str(error), code=code if isinstance(code, str) else None)

    if "text" in payload:
        text = payload["text"]
    else:
        text = candidate_text(payload)

    if isinstance(text, str) and text:
        return StreamEvent.text(text)
    return None


async def reframe_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """Decode an SSE byte stream into events, in arrival order.

    Args:
        chunks: Raw byte chunks as read from the network.

    Yields:
        Text and error events. No event is produced for ``[DONE]``.
    """
    async with aclosing(iter_lines(chunks)) as lines:
        async for line in lines:
            if not line.startswith(DATA_PREFIX):
                continue
            data = line[len(DATA_PREFIX):].removeprefix(" ")
            if data.strip() == DONE_SENTINEL:
                return

            try:
                payload = json.loads(data)
            except ValueError:
                logger.warning(f"Skipping malformed SSE frame: {data[:200]!r}")
                continue

            event = decode_frame(payload)
            if event is not None:
                yield event


def encode_event(event: StreamEvent) -> str:
    """Serialize an event as one SSE frame for the relay's own stream."""
    if event.kind is StreamEventKind.DONE:
        return f"data: {DONE_SENTINEL}\n\n"
    if event.kind is StreamEventKind.ERROR:
        body: dict[str, str] = {"error": event.message or ""}
        if event.code:
            body["code"] = event.code
    else:
        body = {"text": event.delta or ""}
    return f"data: {json.dumps(body, ensure_ascii=False)}\n\n"
