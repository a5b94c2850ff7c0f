from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from doclink.models.domain import ConversationTurn


class HistoryMessage(BaseModel):
    """A prior chat message as sent by the browser client.

    Attributes:
        role: Speaker, ``user`` or ``assistant`` (``model`` is also accepted).
        content: Message text.
    """

    role: Literal["user", "assistant", "model"]
    content: str

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role=self.role, text=self.content)


class DocumentRequest(BaseModel):
    """Request body carrying an inline base64 document.

    Attributes:
        base64_data: Document bytes, base64 encoded.
        mime_type: Document MIME type.
    """

    model_config = ConfigDict(populate_by_name=True)

    base64_data: str = Field(..., alias="base64Data", min_length=1)
    mime_type: str = Field(..., alias="mimeType", min_length=1)


class ChatRelayRequest(DocumentRequest):
    """Request payload for the streaming chat relay endpoint.

    Attributes:
        question: The user's question about the document.
        history: Prior messages in chronological order.
        use_search: Allow the model to ground its answer with web search.
    """

    question: str = Field(..., min_length=1)
    history: list[HistoryMessage] = Field(default_factory=list)
    use_search: bool = Field(False, alias="useSearch")

    @field_validator("question", mode="before")
    @classmethod
    def strip_question(cls, v: str) -> str:
        """Strip whitespace from question before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class AnalyzeRelayRequest(DocumentRequest):
    """Request payload for the one-shot document summary endpoint."""


class SpeechRelayRequest(BaseModel):
    """Request payload for speech synthesis."""

    text: str = Field(..., min_length=1)


class AnalyzeResponse(BaseModel):
    text: str


class SpeechResponse(BaseModel):
    """Synthesized speech as base64-encoded 24kHz 16-bit mono PCM."""

    audio: str


class ErrorResponse(BaseModel):
    error: str


class DocumentUploadResponse(BaseModel):
    """Response after a document upload is validated.

    Attributes:
        name: Original filename.
        mime_type: Detected MIME type.
        size_mb: File size in megabytes.
        pages: Number of pages in the document.
        base64_data: Document bytes ready to send to the chat and analyze endpoints.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    mime_type: str = Field(..., alias="mimeType")
    size_mb: float = Field(..., alias="sizeMb", ge=0)
    pages: int = Field(..., ge=0)
    base64_data: str = Field(..., alias="base64Data")
