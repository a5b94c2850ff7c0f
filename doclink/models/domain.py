"""Core data types shared by the inference pipeline and the relay."""

import base64
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ConversationTurn(BaseModel):
    """One prior message in the conversation.

    Attributes:
        role: Provider role label. ``assistant`` is accepted and stored as ``model``.
        text: Message text.
    """

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: str) -> str:
        """Map the UI's ``assistant`` label to the provider's ``model`` role."""
        if v == "assistant":
            return "model"
        return v


class DocumentPayload(BaseModel):
    """An uploaded document, captured once and reused for every call in a session.

    Attributes:
        data: Raw document bytes.
        mime_type: MIME type sent alongside the inline data.
    """

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = Field(..., min_length=1)

    @classmethod
    def from_base64(cls, encoded: str, mime_type: str) -> "DocumentPayload":
        """Build a payload from its transport encoding.

        Raises:
            ValueError: If ``encoded`` is not valid base64.
        """
        return cls(data=base64.b64decode(encoded, validate=True), mime_type=mime_type)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class ModelCandidate(BaseModel):
    """A model identifier and its position in the roster (0 is primary)."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., min_length=1)
    rank: int = Field(..., ge=0)


class StreamEventKind(str, Enum):
    """Kinds of events produced while streaming an answer."""

    TEXT = "text"
    ERROR = "error"
    DONE = "done"


class StreamEvent(BaseModel):
    """A single unit of streamed output.

    Attributes:
        kind: Event kind.
        delta: Text fragment for ``text`` events.
        message: Human-readable message for ``error`` events.
        code: Machine-readable error code for ``error`` events, when known.
    """

    model_config = ConfigDict(frozen=True)

    kind: StreamEventKind
    delta: str | None = None
    message: str | None = None
    code: str | None = None

    @classmethod
    def text(cls, delta: str) -> "StreamEvent":
        return cls(kind=StreamEventKind.TEXT, delta=delta)

    @classmethod
    def error(cls, message: str, code: str | None = None) -> "StreamEvent":
        return cls(kind=StreamEventKind.ERROR, message=message, code=code)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(kind=StreamEventKind.DONE)


class OutcomeStatus(str, Enum):
    """Classification of a single transport attempt."""

    OK = "ok"
    RATE_LIMITED = "rate_limited"
    OTHER_FAILURE = "other_failure"


class RequestOutcome(BaseModel):
    """Result of one transport attempt against one model candidate.

    Attributes:
        model: Candidate the attempt was made against.
        status: How the attempt ended.
        handle: Open ``httpx.Response`` for streaming calls, parsed JSON otherwise.
        status_code: HTTP status, if a response was received.
        error_text: Upstream body or network error text for failed attempts.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    model: ModelCandidate
    status: OutcomeStatus
    handle: Any = None
    status_code: int | None = None
    error_text: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK
