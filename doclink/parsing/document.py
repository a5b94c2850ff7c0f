"""Document capture using pypdf.

Validates an uploaded PDF and wraps it as a DocumentPayload. The document is
sent to the model inline, so no text extraction happens here; pypdf only
checks that the file opens and counts its pages.
"""

import io
import logging

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from doclink.models.domain import DocumentPayload

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB, keeps inline requests under provider free-tier limits
PDF_MAGIC_BYTES = b"%PDF"
PDF_MIME_TYPE = "application/pdf"


class CapturedDocument(BaseModel):
    """A validated upload.

    Attributes:
        name: Original filename.
        payload: The document as sent to the model.
        pages: Total number of pages in the document.
    """

    name: str
    payload: DocumentPayload
    pages: int = Field(ge=0)

    @property
    def size_mb(self) -> float:
        return round(len(self.payload.data) / (1024 * 1024), 2)


class DocumentCaptureError(Exception):
    """Raised when an upload is not an acceptable document."""

    pass


class DocumentTooLargeError(DocumentCaptureError):
    """Raised when an upload exceeds the size limit."""

    pass


def _validate_pdf_bytes(file_content: bytes, max_size: int) -> None:
    """Validate PDF file content before parsing.

    Args:
        file_content: Raw bytes of the PDF file.
        max_size: Maximum accepted size in bytes.

    Raises:
        DocumentTooLargeError: If the file exceeds ``max_size``.
        DocumentCaptureError: If the file is empty or not a PDF.
    """
    if not file_content:
        raise DocumentCaptureError("Empty file provided")

    if len(file_content) > max_size:
        size_mb = len(file_content) / (1024 * 1024)
        limit_mb = max_size / (1024 * 1024)
        raise DocumentTooLargeError(
            f"File size ({size_mb:.1f}MB) exceeds maximum allowed ({limit_mb:.0f}MB)"
        )

    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise DocumentCaptureError("Invalid PDF: file does not start with PDF header")


def count_pages(file_content: bytes) -> int:
    """Open a PDF and return its page count.

    Raises:
        DocumentCaptureError: If the file is corrupt or has no pages.
    """
    try:
        reader = PdfReader(io.BytesIO(file_content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise DocumentCaptureError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise DocumentCaptureError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise DocumentCaptureError("PDF contains no pages")
    return pages


def capture_document(
    file_content: bytes,
    name: str,
    max_size: int = MAX_FILE_SIZE,
) -> CapturedDocument:
    """Validate a PDF upload and capture it for the session.

    Args:
        file_content: Raw bytes of the PDF file.
        name: Original filename.
        max_size: Maximum accepted size in bytes.

    Returns:
        CapturedDocument with the payload and page count.

    Raises:
        DocumentTooLargeError: If the file exceeds ``max_size``.
        DocumentCaptureError: If the file is empty, not a PDF, or corrupt.
    """
    _validate_pdf_bytes(file_content, max_size)
    pages = count_pages(file_content)

    logger.info(f"Captured document {name}: {pages} pages, {len(file_content)} bytes")
    return CapturedDocument(
        name=name,
        payload=DocumentPayload(data=file_content, mime_type=PDF_MIME_TYPE),
        pages=pages,
    )
