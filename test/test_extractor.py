from io import BytesIO

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from paper_skim.errors import ExtractError, ExtractErrorKind
from paper_skim.extractor import PdfTextExtractor
from paper_skim.models import RawDocument

BODY_LINES = [
    "Sparse Attention for Long Documents",
    "Abstract",
    "We propose a sparse attention pattern that scales linearly with length.",
    "Experiments on three benchmarks show consistent gains over dense baselines.",
]


def make_pdf(pages: list[list[str]]) -> bytes:
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    for lines in pages:
        y = 800
        for line in lines:
            pdf.drawString(72, y, line)
            y -= 18
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def raw(content: bytes, content_type: str = "application/pdf") -> RawDocument:
    return RawDocument(content=content, content_type=content_type, url="https://example.org/p.pdf")


def test_extracts_lines_and_page_count() -> None:
    extracted = PdfTextExtractor().extract(raw(make_pdf([BODY_LINES, BODY_LINES[2:]])))

    assert extracted.page_count == 2
    assert "Abstract" in [line.strip() for line in extracted.lines]
    assert any("sparse attention pattern" in line for line in extracted.lines)


def test_non_pdf_content_is_unsupported() -> None:
    with pytest.raises(ExtractError) as excinfo:
        PdfTextExtractor().extract(raw(b"<html><body>landing page</body></html>", "text/html"))

    assert excinfo.value.kind is ExtractErrorKind.UNSUPPORTED_FORMAT


def test_broken_pdf_is_corrupt() -> None:
    with pytest.raises(ExtractError) as excinfo:
        PdfTextExtractor().extract(raw(b"%PDF-1.4\nthis is not really a pdf body\n"))

    assert excinfo.value.kind is ExtractErrorKind.CORRUPT_DOCUMENT


def test_page_limit_is_enforced() -> None:
    content = make_pdf([BODY_LINES, BODY_LINES, BODY_LINES])

    with pytest.raises(ExtractError) as excinfo:
        PdfTextExtractor(max_pages=2).extract(raw(content))

    assert excinfo.value.kind is ExtractErrorKind.PAGE_LIMIT_EXCEEDED


def test_pdf_without_meaningful_text_is_rejected() -> None:
    with pytest.raises(ExtractError) as excinfo:
        PdfTextExtractor().extract(raw(make_pdf([["Fig. 1"]])))

    assert excinfo.value.kind is ExtractErrorKind.UNSUPPORTED_FORMAT
