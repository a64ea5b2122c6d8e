"""Helpers that turn paper landing-page URLs into PDF URLs."""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

ARXIV_ID_PATTERNS = (
    re.compile(r"arxiv\.org/(?:abs|pdf)/(\d+\.\d+(?:v\d+)?)"),
    re.compile(r"arxiv\.org/(?:abs|pdf)/([a-z-]+(?:\.[A-Z]{2})?/\d+(?:v\d+)?)"),
)
RXIV_CONTENT_PATTERN = re.compile(
    r"^(https?://(?:www\.)?(?:bio|med)rxiv\.org/content/10\.\d+/[\d.]+(?:v\d+)?)(?:[./?#].*)?$"
)
PDF_HREF_PATTERNS = (
    re.compile(r"""href=["']([^"']*\.pdf)["']""", re.IGNORECASE),
    re.compile(r"""href=["']([^"']*/pdf/[^"']*)["']""", re.IGNORECASE),
)
PUBMED_ID_PATTERNS = (
    re.compile(r"pubmed\.ncbi\.nlm\.nih\.gov/(\d+)"),
    re.compile(r"ncbi\.nlm\.nih\.gov/pubmed/(\d+)"),
    re.compile(r"ncbi\.nlm\.nih\.gov/pmc/articles/(PMC\d+)"),
)
RXIV_DOI_PATTERN = re.compile(r"(?:bio|med)rxiv\.org/content/(10\.\d+/[\d.]+)")
HTTP_SCHEMES = frozenset({"http", "https"})


def is_http_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""

    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme.lower() in HTTP_SCHEMES and bool(parts.netloc)


def detect_source(url: str) -> str:
    """Classify a paper URL by hosting service."""

    lowered = url.lower()
    if "arxiv.org" in lowered:
        return "arxiv"
    if "pubmed" in lowered or "ncbi.nlm.nih.gov" in lowered:
        return "pubmed"
    if "biorxiv.org" in lowered:
        return "biorxiv"
    if "medrxiv.org" in lowered:
        return "medrxiv"
    if "archive.org" in lowered:
        return "archive"
    if "scholar.google" in lowered:
        return "scholar"
    return "other"


def extract_arxiv_id(url: str) -> str | None:
    for pattern in ARXIV_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1).removesuffix(".pdf")
    return None


def resolve_pdf_url(url: str) -> str:
    """Best direct PDF URL for `url` without touching the network."""

    source = detect_source(url)
    if source == "arxiv":
        arxiv_id = extract_arxiv_id(url)
        if arxiv_id:
            return f"https://arxiv.org/pdf/{arxiv_id}.pdf"

    if source in {"biorxiv", "medrxiv"} and not url.endswith(".pdf"):
        match = RXIV_CONTENT_PATTERN.match(url)
        if match:
            return f"{match.group(1)}.full.pdf"

    return url


def find_pdf_link(html: str, base_url: str) -> str | None:
    """First PDF-looking link in an HTML page, made absolute."""

    for pattern in PDF_HREF_PATTERNS:
        for match in pattern.finditer(html):
            link = urljoin(base_url, match.group(1))
            if is_http_url(link):
                return link
    return None


def extract_pubmed_id(url: str) -> str | None:
    for pattern in PUBMED_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def extract_rxiv_doi(url: str) -> str | None:
    """DOI of a bioRxiv/medRxiv content URL, without the version suffix."""

    match = RXIV_DOI_PATTERN.search(url)
    return match.group(1).rstrip(".") if match else None
