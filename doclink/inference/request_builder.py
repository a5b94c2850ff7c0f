"""Pure construction of Gemini request payloads.

Each builder returns a GenerateRequest holding two views of the same call:
``body`` is the Gemini ``generateContent`` JSON sent by the direct transport,
``relay_body`` is the camelCase JSON a doclink relay accepts. Builders keep no
state, so identical inputs always produce equal requests, and the same request
object is reused unchanged for every fallback attempt.
"""

from collections.abc import Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from doclink.models.domain import ConversationTurn, DocumentPayload

CHAT_INSTRUCTION = "Doc context active. Answer: {question}"
ANALYSIS_INSTRUCTION = "Quickly summarize this doc: type, main purpose, 3 bullet points. No fluff."
SPEECH_INSTRUCTION = "Say naturally: {text}"

DEFAULT_TEMPERATURE = 0.1
DEFAULT_VOICE = "Kore"


class RequestKind(str, Enum):
    """Which relay endpoint a request corresponds to."""

    CHAT = "chat"
    ANALYSIS = "analysis"
    SPEECH = "speech"


class GenerateRequest(BaseModel):
    """A built request, ready for any transport.

    Attributes:
        kind: Request type.
        body: Provider JSON body.
        relay_body: Relay JSON body.
    """

    model_config = ConfigDict(frozen=True)

    kind: RequestKind
    body: dict[str, Any]
    relay_body: dict[str, Any]


def _history_contents(history: Sequence[ConversationTurn]) -> list[dict[str, Any]]:
    return [{"role": turn.role, "parts": [{"text": turn.text}]} for turn in history]


def _document_turn(document: DocumentPayload, instruction: str) -> dict[str, Any]:
    return {
        "role": "user",
        "parts": [
            {"inlineData": {"data": document.to_base64(), "mimeType": document.mime_type}},
            {"text": instruction},
        ],
    }


def build_chat_request(
    history: Sequence[ConversationTurn],
    question: str,
    document: DocumentPayload,
    use_search: bool = False,
    temperature: float = DEFAULT_TEMPERATURE,
) -> GenerateRequest:
    """Build a streaming chat request about a document.

    Args:
        history: Prior turns in chronological order.
        question: The new question.
        document: The document every answer is grounded in.
        use_search: Let the model issue web searches.
        temperature: Sampling temperature.

    Returns:
        The built request. Prior turns come first, then one user turn with the
        inline document and the question.
    """
    body: dict[str, Any] = {
        "contents": [
            *_history_contents(history),
            _document_turn(document, CHAT_INSTRUCTION.format(question=question)),
        ],
        "generationConfig": {"temperature": temperature},
    }
    if use_search:
        body["tools"] = [{"googleSearch": {}}]

    relay_body = {
        "base64Data": document.to_base64(),
        "mimeType": document.mime_type,
        "question": question,
        "history": [
            {"role": "assistant" if turn.role == "model" else "user", "content": turn.text}
            for turn in history
        ],
        "useSearch": use_search,
    }
    return GenerateRequest(kind=RequestKind.CHAT, body=body, relay_body=relay_body)


def build_analysis_request(document: DocumentPayload) -> GenerateRequest:
    """Build the initial summary request sent right after upload."""
    body = {"contents": [_document_turn(document, ANALYSIS_INSTRUCTION)]}
    relay_body = {"base64Data": document.to_base64(), "mimeType": document.mime_type}
    return GenerateRequest(kind=RequestKind.ANALYSIS, body=body, relay_body=relay_body)


def build_speech_request(text: str, voice: str = DEFAULT_VOICE) -> GenerateRequest:
    """Build a single-shot text-to-speech request."""
    body = {
        "contents": [{"parts": [{"text": SPEECH_INSTRUCTION.format(text=text)}]}],
        "generationConfig": {
            "responseModalities": ["AUDIO"],
            "speechConfig": {
                "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": voice}},
            },
        },
    }
    return GenerateRequest(kind=RequestKind.SPEECH, body=body, relay_body={"text": text})
