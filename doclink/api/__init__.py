"""FastAPI relay for the Doclink inference pipeline.

Endpoints:
    - GET /health: Service health status
    - POST /api/chat: Streaming answer about a document (SSE)
    - POST /api/analyze: One-shot document summary
    - POST /api/tts: Speech synthesis
    - POST /api/upload: PDF validation for a new session
"""

from doclink.api.app import app, create_app

__all__ = ["app", "create_app"]
