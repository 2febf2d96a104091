"""Raw text extraction for uploaded files.

Plain-text uploads are decoded as UTF-8.  PDFs are read page by page with
PyMuPDF (fitz).  When PyMuPDF cannot parse a PDF at all, the bytes are
decoded as UTF-8 as a last resort; that recovers text from "PDFs" that are
really text files with the wrong extension, and is accepted only when it
yields more than a trivial amount of text.

The returned text is raw; callers run it through
:func:`~src.utils.text_normalizer.normalize_document_text`.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.utils.errors import DocumentExtractionError, UnsupportedFileTypeError

logger = structlog.get_logger(logger_name=__name__)

TEXT_CONTENT_TYPE = "text/plain"
PDF_CONTENT_TYPE = "application/pdf"
ALLOWED_CONTENT_TYPES = frozenset({TEXT_CONTENT_TYPE, PDF_CONTENT_TYPE})

# Fallback-decoded text must be longer than this to be trusted.
_FALLBACK_MIN_CHARS = 100


def content_type_for_path(file_name: str) -> str | None:
    """Map a file name to an allowed content type by extension."""
    lowered = file_name.lower()
    if lowered.endswith(".txt"):
        return TEXT_CONTENT_TYPE
    if lowered.endswith(".pdf"):
        return PDF_CONTENT_TYPE
    return None


class DocumentExtractor:
    """Turns uploaded bytes into raw text according to their content type."""

    def extract(self, data: bytes, content_type: str) -> str:
        """Return the raw text of *data*.

        Parameters
        ----------
        data:
            The uploaded file contents.
        content_type:
            ``"text/plain"`` or ``"application/pdf"``.

        Raises
        ------
        UnsupportedFileTypeError
            For any other content type.
        DocumentExtractionError
            If a PDF cannot be parsed and the fallback decode is too short.
        """
        if content_type == TEXT_CONTENT_TYPE:
            return data.decode("utf-8", errors="replace")
        if content_type == PDF_CONTENT_TYPE:
            return self._extract_pdf(data)
        raise UnsupportedFileTypeError()

    @staticmethod
    def _extract_pdf(data: bytes) -> str:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            logger.warning("pdf_parse_failed", error=str(exc), size=len(data))
            fallback = data.decode("utf-8", errors="replace")
            if len(fallback) > _FALLBACK_MIN_CHARS:
                logger.info("pdf_fallback_decode_used", chars=len(fallback))
                return fallback
            raise DocumentExtractionError(
                f"Failed to extract text from PDF: {exc}"
            ) from exc

        pages: list[str] = []
        try:
            for page in doc:
                pages.append(page.get_text("text"))
        finally:
            doc.close()

        logger.debug("pdf_text_extracted", pages=len(pages))
        return "\n".join(pages)
