"""Relay endpoints.

Re-serves the inference pipeline to browser clients so the API key stays on
the server. Chat answers are streamed as SSE frames of ``{"text": ...}``
terminated by ``[DONE]``. Once the streaming response has started, failures
are sent as an ``{"error": ...}`` frame, because the status line and headers
are already committed.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from fastapi import APIRouter, Depends, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse, StreamingResponse

from doclink.inference.errors import (
    AllModelsRateLimitedError,
    EmptyResponseError,
    InferenceError,
)
from doclink.inference.service import InferenceService, get_inference_service
from doclink.inference.sse import encode_event
from doclink.models.domain import DocumentPayload, StreamEvent
from doclink.models.schemas import (
    AnalyzeRelayRequest,
    AnalyzeResponse,
    ChatRelayRequest,
    DocumentRequest,
    DocumentUploadResponse,
    ErrorResponse,
    SpeechRelayRequest,
    SpeechResponse,
)
from doclink.parsing.document import (
    PDF_MIME_TYPE,
    DocumentCaptureError,
    DocumentTooLargeError,
    capture_document,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["relay"])

_ERROR_RESPONSES = {
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_relay_service() -> InferenceService:
    """Relay-side service; always talks to the provider directly."""
    return get_inference_service(transport_mode="direct")


def require_credential(
    service: InferenceService = Depends(get_relay_service),
) -> InferenceService:
    """Resolve the relay service, failing before the body is validated if no key is set.

    Raises:
        MissingCredentialError: Rendered as 500 ``{"error"}`` by the app's handler.
    """
    service.ensure_ready()
    return service


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _decode_document(payload: DocumentRequest) -> DocumentPayload:
    """Decode the inline document of a request body.

    Raises:
        HTTPException: 400 if the data is not valid base64.
    """
    try:
        return DocumentPayload.from_base64(payload.base64_data, payload.mime_type)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="base64Data is not valid base64",
        ) from e


async def _relay_events(events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    """Encode service events as SSE frames, always ending with ``[DONE]``."""
    try:
        async with aclosing(events):
            async for event in events:
                yield encode_event(event)
    except InferenceError as e:
        logger.warning(f"Chat relay failed: {e.code}: {e.message}")
        yield encode_event(StreamEvent.error(e.message, code=e.code))
    except Exception:
        logger.exception("Unexpected error while relaying chat stream")
        yield encode_event(StreamEvent.error("Neural link interrupted."))
    yield encode_event(StreamEvent.done())


@router.post("/chat", response_model=None, responses=_ERROR_RESPONSES)
async def chat(
    payload: ChatRelayRequest,
    service: InferenceService = Depends(require_credential),
) -> StreamingResponse:
    """Stream an answer about the document as server-sent events.

    Args:
        payload: Document, question, history, and search flag.

    Returns:
        ``text/event-stream`` of ``{"text"}`` frames ending with ``[DONE]``.

    Raises:
        400: Invalid base64 document.
        422: Validation error (empty question, bad history).
        500: API key not configured.
    """
    document = _decode_document(payload)
    history = [message.to_turn() for message in payload.history]

    events = service.stream_answer(
        document,
        payload.question,
        history=history,
        use_search=payload.use_search,
    )
    return StreamingResponse(
        _relay_events(events),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/analyze", response_model=AnalyzeResponse, responses=_ERROR_RESPONSES)
async def analyze(
    payload: AnalyzeRelayRequest,
    service: InferenceService = Depends(require_credential),
) -> AnalyzeResponse | JSONResponse:
    """Summarize a document in one non-streaming call.

    Raises:
        429: Every model is rate limited.
        500: API key not configured, or the upstream call failed.
    """
    document = _decode_document(payload)
    try:
        text = await service.analyze_document(document)
    except AllModelsRateLimitedError as e:
        return _error_response(status.HTTP_429_TOO_MANY_REQUESTS, e.message)
    except InferenceError as e:
        logger.error(f"Analyze error: {e.message}")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Analysis failed.")

    return AnalyzeResponse(text=text)


@router.post("/tts", response_model=SpeechResponse, responses=_ERROR_RESPONSES)
async def tts(
    payload: SpeechRelayRequest,
    service: InferenceService = Depends(require_credential),
) -> SpeechResponse | JSONResponse:
    """Synthesize speech for a piece of text.

    Raises:
        500: API key not configured, no audio returned, or the upstream call failed.
    """
    try:
        audio = await service.synthesize_speech(payload.text)
    except EmptyResponseError as e:
        logger.error("No audio data in TTS response")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)
    except InferenceError as e:
        logger.error(f"TTS error: {e.message}")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Speech generation failed.")

    return SpeechResponse(audio=audio)


@router.post("/upload", response_model=DocumentUploadResponse)
async def upload(
    file: UploadFile,
    service: InferenceService = Depends(get_relay_service),
) -> DocumentUploadResponse:
    """Validate an uploaded PDF and return it ready for chat.

    Args:
        file: The uploaded PDF file (multipart/form-data).

    Returns:
        Name, size, page count, and the base64 payload.

    Raises:
        400: Not a PDF, empty, or corrupt.
        413: File exceeds the size limit.
    """
    filename = file.filename
    if not filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename is required",
        )
    if not filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only PDF files are accepted",
        )

    content = await file.read()
    try:
        captured = capture_document(
            content, filename, max_size=service.config.max_document_bytes
        )
    except DocumentTooLargeError as e:
        logger.warning(f"Rejected upload {filename}: {e}")
        raise HTTPException(status_code=413, detail=str(e)) from e
    except DocumentCaptureError as e:
        logger.warning(f"Rejected upload {filename}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    return DocumentUploadResponse(
        name=captured.name,
        mime_type=PDF_MIME_TYPE,
        size_mb=captured.size_mb,
        pages=captured.pages,
        base64_data=captured.payload.to_base64(),
    )
