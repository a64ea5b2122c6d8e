"""Extract flat text lines from downloaded PDF bytes."""

from __future__ import annotations

import logging
from io import BytesIO

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from .errors import ExtractError, ExtractErrorKind
from .models import ExtractedText, RawDocument

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"
MAGIC_WINDOW = 1024


class PdfTextExtractor:
    """Turn a PDF `RawDocument` into `ExtractedText` using pypdf."""

    def __init__(self, max_pages: int = 2000, min_text_chars: int = 100):
        self.max_pages = max_pages
        self.min_text_chars = min_text_chars

    def extract(self, raw: RawDocument) -> ExtractedText:
        if PDF_MAGIC not in raw.content[:MAGIC_WINDOW]:
            raise ExtractError(
                f"Content from {raw.url} is not a PDF ({raw.content_type or 'unknown type'})",
                kind=ExtractErrorKind.UNSUPPORTED_FORMAT,
            )

        try:
            reader = PdfReader(BytesIO(raw.content))
            if reader.is_encrypted and not reader.decrypt(""):
                raise ExtractError(
                    f"PDF from {raw.url} is password protected",
                    kind=ExtractErrorKind.UNSUPPORTED_FORMAT,
                )

            page_count = len(reader.pages)
            if page_count > self.max_pages:
                raise ExtractError(
                    f"PDF has {page_count} pages, limit is {self.max_pages}",
                    kind=ExtractErrorKind.PAGE_LIMIT_EXCEEDED,
                )

            page_texts = [page.extract_text() or "" for page in reader.pages]
        except ExtractError:
            raise
        except (PyPdfError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise ExtractError(
                f"Could not read PDF from {raw.url}: {exc}",
                kind=ExtractErrorKind.CORRUPT_DOCUMENT,
            ) from exc

        text = "\n".join(page_texts)
        visible_chars = sum(1 for char in text if not char.isspace())
        if visible_chars < self.min_text_chars:
            raise ExtractError(
                f"PDF from {raw.url} has no meaningful text ({visible_chars} characters)",
                kind=ExtractErrorKind.UNSUPPORTED_FORMAT,
            )

        logger.info("Extracted %d pages from %s", page_count, raw.url)
        return ExtractedText(lines=text.splitlines(), page_count=page_count)
