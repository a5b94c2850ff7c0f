"""Test package for doclink.

Structure:
    - unit/: Individual function and class tests
    - integration/: Relay endpoints exercised through httpx ASGITransport

Upstream Gemini calls are served by httpx.MockTransport, so no network
access or API key is needed. Leverages pytest with pytest-check for soft
assertions.
"""
