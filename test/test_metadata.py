import json

import pytest

from paper_skim.errors import FetchError, FetchErrorKind
from paper_skim.metadata import MetadataResolver, parse_arxiv_feed
from paper_skim.models import RawDocument


class FakeFetcher:
    def __init__(self, responses: dict[str, str | Exception]):
        self.responses = responses
        self.calls: list[str] = []

    def fetch(self, url: str) -> RawDocument:
        self.calls.append(url)
        response = self.responses.get(url)
        if response is None:
            raise FetchError(f"unexpected {url}", kind=FetchErrorKind.HTTP_STATUS, status_code=404)
        if isinstance(response, Exception):
            raise response
        return RawDocument(content=response.encode("utf-8"), content_type="text/plain", url=url)


ARXIV_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/abs/2401.01234v2</id>
    <published>2024-01-02T18:00:00Z</published>
    <title>Sparse   Attention
      for Long Documents</title>
    <summary>  We make attention
      sparse. </summary>
    <author><name>Ada Lovelace</name></author>
    <author><name>Alan Turing</name></author>
    <link href="http://arxiv.org/abs/2401.01234v2" rel="alternate" type="text/html"/>
    <link title="pdf" href="http://arxiv.org/pdf/2401.01234v2" rel="related" type="application/pdf"/>
  </entry>
</feed>
"""

ARXIV_QUERY = "https://export.arxiv.org/api/query?id_list=2401.01234v2"
PUBMED_SUMMARY = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esummary.fcgi?db=pubmed&id=12345&retmode=json"
PUBMED_ABSTRACT = (
    "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/efetch.fcgi?db=pubmed&id=12345&rettype=abstract&retmode=text"
)
RXIV_DETAILS = "https://api.biorxiv.org/details/biorxiv/10.1101/2024.01.01.123456/na/json"


def test_arxiv_feed_fills_title_authors_abstract_and_pdf() -> None:
    fetcher = FakeFetcher({ARXIV_QUERY: ARXIV_FEED})

    metadata = MetadataResolver(fetcher).lookup("https://arxiv.org/abs/2401.01234v2")

    assert fetcher.calls == [ARXIV_QUERY]
    assert metadata.source == "arxiv"
    assert metadata.title == "Sparse Attention for Long Documents"
    assert metadata.authors == ["Ada Lovelace", "Alan Turing"]
    assert metadata.abstract == "We make attention sparse."
    assert metadata.published_date == "2024-01-02"
    assert metadata.pdf_url == "http://arxiv.org/pdf/2401.01234v2.pdf"


def test_arxiv_feed_without_pdf_link_builds_one() -> None:
    feed = ARXIV_FEED.replace('title="pdf" ', "").replace('type="application/pdf"', 'type="text/html"')

    metadata = parse_arxiv_feed(feed, "2401.01234v2")

    assert metadata.pdf_url == "https://arxiv.org/pdf/2401.01234v2.pdf"


def test_empty_arxiv_feed_has_no_metadata() -> None:
    assert parse_arxiv_feed('<feed xmlns="http://www.w3.org/2005/Atom"></feed>', "1") is None


def test_pubmed_summary_and_abstract() -> None:
    summary = {
        "result": {
            "uids": ["12345"],
            "12345": {
                "title": "A <i>trial</i> of things.",
                "authors": [{"name": "Smith J"}, {"name": "Doe A"}, {"authtype": "CollectiveName"}],
                "pubdate": "2023 Mar 4",
                "articleids": [{"idtype": "pubmed", "value": "12345"}, {"idtype": "pmc", "value": "PMC999"}],
            },
        }
    }
    fetcher = FakeFetcher({PUBMED_SUMMARY: json.dumps(summary), PUBMED_ABSTRACT: "\nAbstract text.\n"})

    metadata = MetadataResolver(fetcher).lookup("https://pubmed.ncbi.nlm.nih.gov/12345/")

    assert metadata.title == "A trial of things."
    assert metadata.authors == ["Smith J", "Doe A"]
    assert metadata.published_date == "2023 Mar 4"
    assert metadata.abstract == "Abstract text."
    assert metadata.pdf_url == "https://www.ncbi.nlm.nih.gov/pmc/articles/PMC999/pdf/"


def test_pubmed_abstract_failure_keeps_summary() -> None:
    summary = {"result": {"12345": {"title": "Only a title", "authors": []}}}
    fetcher = FakeFetcher(
        {
            PUBMED_SUMMARY: json.dumps(summary),
            PUBMED_ABSTRACT: FetchError("down", kind=FetchErrorKind.HTTP_STATUS, status_code=503),
        }
    )

    metadata = MetadataResolver(fetcher).lookup("https://pubmed.ncbi.nlm.nih.gov/12345/")

    assert metadata.title == "Only a title"
    assert metadata.abstract == ""
    assert metadata.pdf_url is None


def test_pmc_article_links_straight_to_pdf() -> None:
    fetcher = FakeFetcher({})

    metadata = MetadataResolver(fetcher).lookup("https://www.ncbi.nlm.nih.gov/pmc/articles/PMC7654321/")

    assert fetcher.calls == []
    assert metadata.pdf_url == "https://www.ncbi.nlm.nih.gov/pmc/articles/PMC7654321/pdf/"


def test_biorxiv_details() -> None:
    details = {
        "collection": [
            {
                "title": "Cells   do things",
                "authors": "Smith, J.; Doe, A.;",
                "abstract": "We looked\nat cells.",
                "date": "2024-01-01",
                "version": "2",
            }
        ]
    }
    fetcher = FakeFetcher({RXIV_DETAILS: json.dumps(details)})

    metadata = MetadataResolver(fetcher).lookup("https://www.biorxiv.org/content/10.1101/2024.01.01.123456v2")

    assert metadata.source == "biorxiv"
    assert metadata.title == "Cells do things"
    assert metadata.authors == ["Smith, J.", "Doe, A."]
    assert metadata.abstract == "We looked at cells."
    assert metadata.pdf_url == "https://www.biorxiv.org/content/10.1101/2024.01.01.123456v2.full.pdf"


@pytest.mark.parametrize(
    "responses",
    [
        {},
        {ARXIV_QUERY: "<not xml"},
        {ARXIV_QUERY: FetchError("slow", kind=FetchErrorKind.TIMEOUT)},
    ],
)
def test_failed_lookup_returns_none(responses) -> None:
    assert MetadataResolver(FakeFetcher(responses)).lookup("https://arxiv.org/abs/2401.01234v2") is None


@pytest.mark.parametrize(
    ("url", "body"),
    [
        ("https://pubmed.ncbi.nlm.nih.gov/12345/", "not json"),
        ("https://pubmed.ncbi.nlm.nih.gov/12345/", json.dumps({"result": {}})),
        ("https://www.biorxiv.org/content/10.1101/2024.01.01.123456v2", json.dumps({"collection": []})),
    ],
)
def test_unusable_replies_return_none(url: str, body: str) -> None:
    fetcher = FakeFetcher({PUBMED_SUMMARY: body, RXIV_DETAILS: body})

    assert MetadataResolver(fetcher).lookup(url) is None


def test_unknown_hosts_are_not_looked_up() -> None:
    fetcher = FakeFetcher({})

    assert MetadataResolver(fetcher).lookup("https://journal.example/article/7") is None
    assert fetcher.calls == []
