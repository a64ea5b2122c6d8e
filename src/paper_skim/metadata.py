"""Bibliographic metadata from the arXiv, PubMed and bioRxiv/medRxiv APIs."""

from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from urllib.parse import quote

from .errors import FetchError
from .interfaces import FetcherInterface
from .models import PaperMetadata
from .resolver import detect_source, extract_arxiv_id, extract_pubmed_id, extract_rxiv_doi

logger = logging.getLogger(__name__)

ARXIV_API_URL = "https://export.arxiv.org/api/query"
ATOM_NS = {"atom": "http://www.w3.org/2005/Atom", "arxiv": "http://arxiv.org/schemas/atom"}
PUBMED_SUMMARY_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esummary.fcgi"
PUBMED_ABSTRACT_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/efetch.fcgi"
PMC_PDF_URL = "https://www.ncbi.nlm.nih.gov/pmc/articles/{pmcid}/pdf/"
RXIV_API_URL = "https://api.biorxiv.org/details"
TAG_PATTERN = re.compile(r"<[^>]+>")


class MetadataResolver:
    """Look up title, authors, abstract and PDF link for known hosts.

    Lookups are best effort: unknown hosts and failed lookups return None and
    ingestion falls back to the URL itself.
    """

    def __init__(self, fetcher: FetcherInterface):
        self.fetcher = fetcher

    def lookup(self, url: str) -> PaperMetadata | None:
        source = detect_source(url)
        try:
            if source == "arxiv":
                arxiv_id = extract_arxiv_id(url)
                return self._arxiv(arxiv_id) if arxiv_id else None
            if source == "pubmed":
                pmid = extract_pubmed_id(url)
                return self._pubmed(pmid) if pmid else None
            if source in {"biorxiv", "medrxiv"}:
                doi = extract_rxiv_doi(url)
                return self._rxiv(doi, source) if doi else None
        except (FetchError, ValueError, KeyError, TypeError, AttributeError, ET.ParseError) as exc:
            logger.warning("Metadata lookup failed for %s: %s", url, exc)
        return None

    def _get_text(self, url: str) -> str:
        return self.fetcher.fetch(url).content.decode("utf-8", errors="replace")

    def _arxiv(self, arxiv_id: str) -> PaperMetadata | None:
        feed = self._get_text(f"{ARXIV_API_URL}?id_list={quote(arxiv_id)}")
        return parse_arxiv_feed(feed, arxiv_id)

    def _pubmed(self, pmid: str) -> PaperMetadata | None:
        if pmid.startswith("PMC"):
            return PaperMetadata(source="pubmed", pdf_url=PMC_PDF_URL.format(pmcid=pmid))

        payload = json.loads(self._get_text(f"{PUBMED_SUMMARY_URL}?db=pubmed&id={pmid}&retmode=json"))
        metadata = parse_pubmed_summary(payload, pmid)
        if metadata is None:
            return None

        try:
            metadata.abstract = self._get_text(
                f"{PUBMED_ABSTRACT_URL}?db=pubmed&id={pmid}&rettype=abstract&retmode=text"
            ).strip()
        except FetchError as exc:
            logger.info("No PubMed abstract for %s: %s", pmid, exc)
        return metadata

    def _rxiv(self, doi: str, server: str) -> PaperMetadata | None:
        payload = json.loads(self._get_text(f"{RXIV_API_URL}/{server}/{doi}/na/json"))
        return parse_rxiv_details(payload, doi, server)


def parse_arxiv_feed(xml_text: str, arxiv_id: str) -> PaperMetadata | None:
    """Metadata from an arXiv API Atom feed, or None when it has no entry."""

    root = ET.fromstring(xml_text)
    entry = root.find("atom:entry", ATOM_NS)
    if entry is None:
        return None

    authors = []
    for author_node in entry.findall("atom:author", ATOM_NS):
        name = _read_text(author_node, "atom:name")
        if name:
            authors.append(name)

    pdf_url = _extract_pdf_link(entry) or f"https://arxiv.org/pdf/{arxiv_id}"
    if not pdf_url.endswith(".pdf"):
        pdf_url += ".pdf"

    published = _read_text(entry, "atom:published") or _read_text(entry, "atom:updated")
    return PaperMetadata(
        source="arxiv",
        title=_read_text(entry, "atom:title"),
        authors=authors,
        abstract=_read_text(entry, "atom:summary"),
        published_date=published.split("T")[0] if published else None,
        pdf_url=pdf_url,
    )


def parse_pubmed_summary(payload: dict, pmid: str) -> PaperMetadata | None:
    """Metadata from an E-utilities esummary JSON reply."""

    doc = (payload.get("result") or {}).get(pmid)
    if not isinstance(doc, dict):
        return None

    pdf_url = None
    for article_id in doc.get("articleids") or []:
        if isinstance(article_id, dict) and article_id.get("idtype") == "pmc":
            pdf_url = PMC_PDF_URL.format(pmcid=article_id.get("value", ""))
            break

    return PaperMetadata(
        source="pubmed",
        title=TAG_PATTERN.sub("", doc.get("title") or "").strip(),
        authors=[
            author["name"] for author in doc.get("authors") or [] if isinstance(author, dict) and author.get("name")
        ],
        published_date=doc.get("pubdate") or None,
        pdf_url=pdf_url,
    )


def parse_rxiv_details(payload: dict, doi: str, server: str) -> PaperMetadata | None:
    """Metadata from a bioRxiv/medRxiv details API reply."""

    collection = payload.get("collection") or []
    if not collection:
        return None

    doc = collection[0]
    authors = [name.strip() for name in (doc.get("authors") or "").split(";") if name.strip()]
    return PaperMetadata(
        source=server,
        title=" ".join((doc.get("title") or "").split()),
        authors=authors,
        abstract=" ".join((doc.get("abstract") or "").split()),
        published_date=doc.get("date") or None,
        pdf_url=f"https://www.{server}.org/content/{doi}v{doc.get('version') or 1}.full.pdf",
    )


def _read_text(node: ET.Element, path: str) -> str:
    found = node.find(path, ATOM_NS)
    if found is None or found.text is None:
        return ""
    return " ".join(found.text.split())


def _extract_pdf_link(entry: ET.Element) -> str | None:
    for link in entry.findall("atom:link", ATOM_NS):
        href = link.attrib.get("href", "")
        title = link.attrib.get("title", "")
        link_type = link.attrib.get("type", "")
        if href and (title.lower() == "pdf" or link_type == "application/pdf"):
            return href
    return None
