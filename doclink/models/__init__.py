"""Pydantic models for the inference pipeline and the relay API.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - domain: ConversationTurn, DocumentPayload, ModelCandidate, StreamEvent, RequestOutcome
    - schemas: relay request and response bodies (camelCase on the wire)
"""

from doclink.models.domain import (
    ConversationTurn,
    DocumentPayload,
    ModelCandidate,
    OutcomeStatus,
    RequestOutcome,
    StreamEvent,
    StreamEventKind,
)

__all__ = [
    "ConversationTurn",
    "DocumentPayload",
    "ModelCandidate",
    "OutcomeStatus",
    "RequestOutcome",
    "StreamEvent",
    "StreamEventKind",
]
