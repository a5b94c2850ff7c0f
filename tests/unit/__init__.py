"""Unit tests for individual components in isolation.

Coverage:
    - inference/: config, roster, request building, transports, fallback, SSE reframing
    - parsing/: PDF validation and page counting

Upstream calls go to a fake Gemini API built on httpx.MockTransport.
"""
