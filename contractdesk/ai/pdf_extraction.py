"""Text extraction from PDF contracts with pypdf."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, Dict

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from contractdesk.errors import PdfExtractionError
from contractdesk.utils.logging import get_logger

log = get_logger(__name__)

PDF_MAGIC = b"%PDF-"

_INFO_FIELDS = (
    "title",
    "author",
    "subject",
    "creator",
    "producer",
    "creation_date",
    "modification_date",
)


@dataclass
class PdfExtractionResult:
    text: str
    info: Dict[str, Any] = field(default_factory=dict)
    total_pages: int = 0

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())

    @property
    def text_length(self) -> int:
        return len(self.text)


def validate_pdf_bytes(data: bytes) -> bool:
    return bool(data) and data[:8].startswith(PDF_MAGIC)


def _document_info(reader: PdfReader) -> Dict[str, Any]:
    try:
        meta = reader.metadata
    except (PyPdfError, ValueError) as exc:
        log.warning("Could not read PDF metadata", extra={"error": str(exc)})
        return {}
    if meta is None:
        return {}
    info: Dict[str, Any] = {}
    for attr in _INFO_FIELDS:
        try:
            value = getattr(meta, attr)
        except (PyPdfError, ValueError):
            value = None
        if value is not None:
            info[attr] = value
    return info


def extract_text_from_pdf(data: bytes) -> PdfExtractionResult:
    """
    Extract the text of every page of a PDF.

    Pages are joined with a blank line. A page whose text cannot be
    extracted is replaced by an ``[Error on page N]`` marker so the rest of
    the document is still usable.

    Raises
    ------
    PdfExtractionError
        When `data` is not a PDF or pypdf cannot open it.
    """
    if not validate_pdf_bytes(data):
        raise PdfExtractionError("File is not a valid PDF")

    try:
        reader = PdfReader(io.BytesIO(data))
        pages = list(reader.pages)
    except (PyPdfError, ValueError) as exc:
        raise PdfExtractionError(f"Could not open PDF: {exc}") from exc

    total = len(pages)
    parts = []
    for number, page in enumerate(pages, 1):
        try:
            parts.append(page.extract_text() or "")
        except (PyPdfError, ValueError, KeyError, TypeError) as exc:
            log.warning("Page extraction failed", extra={"page": number, "error": str(exc)})
            parts.append(f"[Error on page {number}]")

    result = PdfExtractionResult(
        text="\n\n".join(parts).strip(),
        info=_document_info(reader),
        total_pages=total,
    )
    log.info(
        "PDF text extracted",
        extra={"pages": total, "chars": result.text_length, "has_text": result.has_text},
    )
    return result


__all__ = ["PdfExtractionResult", "extract_text_from_pdf", "validate_pdf_bytes"]
