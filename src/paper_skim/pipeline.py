"""Ingest orchestration: fetch, extract and reconstruct one paper."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .interfaces import ExtractorInterface, FetcherInterface, MetadataInterface, ReconstructorInterface
from .models import IngestResult, RawDocument
from .resolver import find_pdf_link, is_http_url, resolve_pdf_url

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestPipeline:
    """Coordinate metadata lookup, fetching, text extraction, and structure recovery."""

    fetcher: FetcherInterface
    extractor: ExtractorInterface
    reconstructor: ReconstructorInterface
    metadata: MetadataInterface | None = None

    def ingest(self, url: str) -> IngestResult:
        """Turn a paper URL into a structured document.

        Fetch and extract errors propagate unchanged; no partial document is
        produced.
        """

        metadata = self.metadata.lookup(url) if self.metadata is not None else None
        if metadata is not None and metadata.pdf_url:
            pdf_url = metadata.pdf_url
        else:
            pdf_url = resolve_pdf_url(url)
        raw = self.fetcher.fetch(pdf_url)

        if _is_html(raw):
            link = find_pdf_link(raw.content.decode("utf-8", errors="replace"), raw.url)
            if link and link != raw.url and is_http_url(link):
                logger.info("Following PDF link %s found on %s", link, raw.url)
                pdf_url = link
                raw = self.fetcher.fetch(link)

        extracted = self.extractor.extract(raw)
        del raw

        document = self.reconstructor.reconstruct(extracted)
        logger.info(
            "Ingested %s: %d pages, %d blocks",
            url,
            extracted.page_count,
            len(document.blocks),
        )
        return IngestResult(
            url=url,
            pdf_url=pdf_url,
            byte_size=extracted.byte_size,
            page_count=extracted.page_count,
            document=document,
            metadata=metadata,
        )


def _is_html(raw: RawDocument) -> bool:
    return "html" in raw.content_type.lower()
