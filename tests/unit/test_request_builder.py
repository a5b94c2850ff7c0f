"""Unit tests for request construction."""

import base64

import pytest_check as check

from doclink.inference.request_builder import (
    ANALYSIS_INSTRUCTION,
    RequestKind,
    build_analysis_request,
    build_chat_request,
    build_speech_request,
)
from doclink.models.domain import ConversationTurn, DocumentPayload


def _history() -> list[ConversationTurn]:
    return [
        ConversationTurn(role="user", text="What is this?"),
        ConversationTurn(role="assistant", text="A contract."),
        ConversationTurn(role="user", text="Who signed it?"),
    ]


class TestChatRequest:
    """Tests for build_chat_request."""

    def test_history_precedes_document_turn(self, document: DocumentPayload) -> None:
        """Prior turns keep their order and the document turn comes last."""
        request = build_chat_request(_history(), "Key takeaways", document)
        contents = request.body["contents"]

        check.equal(len(contents), 4)
        check.equal([c["role"] for c in contents], ["user", "model", "user", "user"])
        check.equal(contents[0]["parts"], [{"text": "What is this?"}])
        check.equal(contents[1]["parts"], [{"text": "A contract."}])

    def test_final_turn_carries_document_and_question(self, document: DocumentPayload) -> None:
        request = build_chat_request([], "Key takeaways", document)
        final = request.body["contents"][-1]

        assert final["role"] == "user"
        inline, instruction = final["parts"]
        assert inline == {
            "inlineData": {
                "data": base64.b64encode(document.data).decode(),
                "mimeType": "application/pdf",
            }
        }
        assert instruction == {"text": "Doc context active. Answer: Key takeaways"}

    def test_generation_config_temperature(self, document: DocumentPayload) -> None:
        request = build_chat_request([], "q", document)

        assert request.body["generationConfig"] == {"temperature": 0.1}

    def test_search_flag_adds_tool(self, document: DocumentPayload) -> None:
        with_search = build_chat_request([], "q", document, use_search=True)
        without_search = build_chat_request([], "q", document)

        assert with_search.body["tools"] == [{"googleSearch": {}}]
        assert "tools" not in without_search.body

    def test_identical_inputs_give_identical_requests(self, document: DocumentPayload) -> None:
        first = build_chat_request(_history(), "q", document, use_search=True)
        second = build_chat_request(_history(), "q", document, use_search=True)

        assert first == second
        assert first.kind is RequestKind.CHAT

    def test_history_is_not_modified(self, document: DocumentPayload) -> None:
        history = _history()
        snapshot = list(history)

        build_chat_request(history, "q", document)

        assert history == snapshot

    def test_relay_body_round_trips_roles(self, document: DocumentPayload) -> None:
        """The relay body uses the client's vocabulary: assistant, content, camelCase."""
        request = build_chat_request(_history(), "q", document, use_search=True)
        relay_body = request.relay_body

        check.equal(relay_body["question"], "q")
        check.equal(relay_body["useSearch"], True)
        check.equal(relay_body["mimeType"], "application/pdf")
        check.equal(
            [m["role"] for m in relay_body["history"]], ["user", "assistant", "user"]
        )
        check.equal(relay_body["history"][1]["content"], "A contract.")


class TestAnalysisRequest:
    """Tests for build_analysis_request."""

    def test_single_turn_with_fixed_instruction(self, document: DocumentPayload) -> None:
        request = build_analysis_request(document)
        contents = request.body["contents"]

        assert request.kind is RequestKind.ANALYSIS
        assert len(contents) == 1
        assert contents[0]["parts"][1] == {"text": ANALYSIS_INSTRUCTION}
        assert "generationConfig" not in request.body
        assert request.relay_body == {
            "base64Data": document.to_base64(),
            "mimeType": "application/pdf",
        }


class TestSpeechRequest:
    """Tests for build_speech_request."""

    def test_requests_audio_modality(self) -> None:
        request = build_speech_request("Hello there")
        config = request.body["generationConfig"]

        assert request.kind is RequestKind.SPEECH
        assert request.body["contents"] == [{"parts": [{"text": "Say naturally: Hello there"}]}]
        assert config["responseModalities"] == ["AUDIO"]
        assert config["speechConfig"]["voiceConfig"]["prebuiltVoiceConfig"]["voiceName"] == "Kore"
        assert request.relay_body == {"text": "Hello there"}
