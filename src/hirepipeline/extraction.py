"""Tiered plain-text extraction for uploaded résumés."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import structlog

from .core.interfaces import VisionOracle
from .errors import ExtractionError, UnsupportedDocumentError
from .pdf_utils import extract_markdown

TEXT_MIME_TYPES: frozenset[str] = frozenset({"text/plain", "text/markdown"})
PDF_MIME_TYPES: frozenset[str] = frozenset({"application/pdf"})
IMAGE_MIME_TYPES: frozenset[str] = frozenset({"image/png", "image/jpeg", "image/webp", "image/gif"})
SUPPORTED_MIME_TYPES: frozenset[str] = TEXT_MIME_TYPES | PDF_MIME_TYPES | IMAGE_MIME_TYPES


@dataclass
class ExtractionConfig:
    """Limits applied to document extraction."""

    max_bytes: int = 10 * 1024 * 1024
    min_text_chars: int = 50
    # Shorter local PDF text is treated as a scanned document.
    min_pdf_text_chars: int = 100


class TextExtractor:
    """Turn document bytes into plain text, cheapest strategy first."""

    def __init__(
        self,
        *,
        vision: VisionOracle | None = None,
        config: ExtractionConfig | None = None,
        pdf_reader: Callable[[bytes], str] = extract_markdown,
    ) -> None:
        self._vision = vision
        self._config = config or ExtractionConfig()
        self._pdf_reader = pdf_reader
        self._logger = structlog.get_logger(__name__)

    def extract(self, data: bytes, mime_type: str, **log_context) -> str:
        mime = _normalize_mime(mime_type)
        if mime not in SUPPORTED_MIME_TYPES:
            raise UnsupportedDocumentError(f"unsupported document type {mime_type!r}")
        if len(data) > self._config.max_bytes:
            raise UnsupportedDocumentError(
                f"document is {len(data)} bytes; the limit is {self._config.max_bytes} bytes"
            )
        if not data:
            raise ExtractionError("document is empty")

        text: str | None = None
        tier = "vision"
        if mime in TEXT_MIME_TYPES:
            text = self._decode_text(data)
            tier = "text"
        elif mime in PDF_MIME_TYPES:
            text = self._read_pdf(data, **log_context)
            tier = "pdf_text"

        if text is None:
            text = self._vision_extract(data, mime, **log_context)
            tier = "vision"

        cleaned = text.strip()
        self._logger.info("extraction.tier", tier=tier, mime_type=mime, chars=len(cleaned), **log_context)
        if len(cleaned) < self._config.min_text_chars:
            raise ExtractionError(
                f"insufficient text: extracted {len(cleaned)} characters, "
                f"at least {self._config.min_text_chars} required"
            )
        return cleaned

    @staticmethod
    def _decode_text(data: bytes) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ExtractionError(f"text document is not valid UTF-8: {exc}") from exc

    def _read_pdf(self, data: bytes, **log_context) -> str | None:
        try:
            text = self._pdf_reader(data)
        except Exception as exc:  # noqa: BLE001
            self._logger.info(
                "extraction.pdf_unreadable",
                error_type=type(exc).__name__,
                error=str(exc),
                **log_context,
            )
            return None
        if len(text.strip()) < self._config.min_pdf_text_chars:
            self._logger.info("extraction.pdf_scanned", chars=len(text.strip()), **log_context)
            return None
        return text

    def _vision_extract(self, data: bytes, mime: str, **log_context) -> str:
        if self._vision is None:
            raise ExtractionError(
                f"no text layer found in {mime} document and no vision oracle is configured"
            )
        self._logger.info("extraction.vision_request", mime_type=mime, size=len(data), **log_context)
        return self._vision.extract_text(data, mime) or ""


def _normalize_mime(mime_type: str) -> str:
    mime = (mime_type or "").split(";", 1)[0].strip().lower()
    if mime == "image/jpg":
        return "image/jpeg"
    return mime


__all__ = [
    "ExtractionConfig",
    "IMAGE_MIME_TYPES",
    "PDF_MIME_TYPES",
    "SUPPORTED_MIME_TYPES",
    "TEXT_MIME_TYPES",
    "TextExtractor",
]
