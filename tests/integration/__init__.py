"""Integration tests for the relay app as a whole.

Coverage:
    - /api/chat SSE relay, including error frames and [DONE]
    - /api/analyze, /api/tts and /api/upload
    - A relayed InferenceService pointed at the relay app

Requests run through the real FastAPI app; only the Gemini upstream is faked.
"""
