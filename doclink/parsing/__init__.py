"""Document capture for uploads.

Responsibilities:
    - PDF validation (size limit, header check) with pypdf
    - Page counting for document stats
    - Wrapping the raw bytes as the session's DocumentPayload
"""

from doclink.parsing.document import (
    CapturedDocument,
    DocumentCaptureError,
    DocumentTooLargeError,
    capture_document,
)

__all__ = [
    "CapturedDocument",
    "DocumentCaptureError",
    "DocumentTooLargeError",
    "capture_document",
]
