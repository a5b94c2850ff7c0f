"""Doclink - streaming conversations about an uploaded document.

Combines httpx for resilient streaming calls to the Gemini API, FastAPI for
the SSE relay, and Pydantic for data validation.

Components:
    - inference: model roster, fallback, transports, and SSE decoding
    - api: relay endpoints that re-stream answers to browser clients
    - parsing: PDF validation for uploads
    - models: domain types and request/response schemas
"""

__version__ = "0.1.0"
