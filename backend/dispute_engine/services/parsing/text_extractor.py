"""
Dispute Engine - File Intake

Turns an uploaded blob (PDF, HTML, plain text, CSV) into UTF-8 text.
Validation happens before extraction so we never hand executables or
archives to the PDF reader.
"""
from __future__ import annotations
import io
import logging
import os
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ...exceptions import FileTooLargeError, FileValidationError, ParseError, UnsupportedFormatError

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

ALLOWED_EXTENSIONS = {".pdf", ".txt", ".csv", ".html", ".htm"}

CONTENT_TYPE_EXTENSIONS = {
    "application/pdf": ".pdf",
    "text/plain": ".txt",
    "text/csv": ".csv",
    "text/html": ".html",
}

# Executables and archives are rejected outright
DANGEROUS_SIGNATURES = (
    b"MZ",            # Windows PE
    b"\x7fELF",       # ELF
    b"PK\x03\x04",    # ZIP (also docx/xlsx/jar)
    b"\xca\xfe\xba\xbe",  # Mach-O fat / Java class
)

PDF_SIGNATURE = b"%PDF"

# Extracted text shorter than this is almost certainly a failed extraction
MIN_TEXT_LENGTH = 100


# =============================================================================
# VALIDATION
# =============================================================================

def resolve_extension(filename: Optional[str], content_type: Optional[str] = None) -> str:
    """Extension from the filename, falling back to the declared MIME type."""
    suffix = Path(filename or "").suffix.lower()
    if suffix:
        return suffix
    if content_type:
        return CONTENT_TYPE_EXTENSIONS.get(content_type.split(";")[0].strip().lower(), "")
    return ""


def validate_upload(
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str] = None,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> str:
    """
    Check size, extension and magic bytes of an upload.

    Returns the resolved extension. Raises FileValidationError for empty or
    oversized files and dangerous signatures, UnsupportedFormatError for
    extensions we do not read.
    """
    if not content:
        raise FileValidationError("File is empty")
    if len(content) > max_bytes:
        raise FileTooLargeError(
            f"File is {len(content)} bytes, maximum is {max_bytes} bytes"
        )

    extension = resolve_extension(filename, content_type)
    if extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedFormatError(
            f"Unsupported file type '{extension or 'unknown'}'. "
            f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    for signature in DANGEROUS_SIGNATURES:
        if content.startswith(signature):
            raise FileValidationError("File content looks like an executable or archive")

    if extension == ".pdf" and not content.startswith(PDF_SIGNATURE):
        raise FileValidationError("File has a .pdf extension but is not a PDF")

    return extension


# =============================================================================
# EXTRACTION
# =============================================================================

def _extract_pdf(content: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PdfReadError as e:
        raise ParseError(f"Could not read PDF: {e}") from e
    return "\n".join(pages)


def _extract_html(content: bytes) -> str:
    soup = BeautifulSoup(content, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return soup.get_text("\n")


def _decode(content: bytes) -> str:
    if content.startswith(b"\xef\xbb\xbf"):
        content = content[3:]
    return content.decode("utf-8", errors="replace")


def extract_text(
    content: bytes,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> str:
    """Return the report text of an uploaded file."""
    extension = validate_upload(filename, content, content_type)

    if extension == ".pdf":
        text = _extract_pdf(content)
    elif extension in (".html", ".htm"):
        text = _extract_html(content)
    else:
        text = _decode(content)

    # Normalize line endings; blank lines are kept as block separators
    lines = [line.rstrip() for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n")]
    cleaned = "\n".join(lines).strip()
    logger.info(f"Extracted {len(cleaned)} characters from {filename or 'upload'} ({extension})")
    return cleaned


def looks_unparsed(text: str) -> bool:
    """True when extraction probably failed (too short or raw PDF syntax)."""
    stripped = text.strip()
    return len(stripped) < MIN_TEXT_LENGTH or stripped.startswith("%PDF")
