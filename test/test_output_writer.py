import re
from pathlib import Path

from paper_skim.output_writer import MarkdownWriter, _inline_to_reportlab, _parse_markdown_blocks, slugify


def test_markdown_writer_outputs_markdown_and_pdf(tmp_path: Path) -> None:
    output_dir = tmp_path / "reports"

    writer = MarkdownWriter(output_dir=output_dir, output_pdf=True)
    output_path = writer.write(title="Deep Residual Learning", text="# Title\n\n- **Rating**: 8/10\n\nBody")

    md_path = output_dir / "deep-residual-learning.md"
    pdf_path = output_dir / "deep-residual-learning.pdf"

    assert output_path == str(md_path)
    assert md_path.read_text(encoding="utf-8").startswith("# Title")
    assert pdf_path.exists()
    assert pdf_path.read_bytes().startswith(b"%PDF")


def test_markdown_writer_skips_pdf_when_disabled(tmp_path: Path) -> None:
    writer = MarkdownWriter(output_dir=tmp_path)
    writer.write(title="Paper", text="# Title\n\nBody")

    assert (tmp_path / "paper.md").exists()
    assert not (tmp_path / "paper.pdf").exists()


def test_slugify_handles_punctuation_and_empty_titles() -> None:
    assert slugify("Attention Is All You Need!") == "attention-is-all-you-need"
    assert slugify("???") == "paper"
    assert len(slugify("word " * 40)) <= 80


def test_parse_markdown_blocks_preserves_structure() -> None:
    markdown = (
        "# Title\n\n"
        "Intro paragraph.\n\n"
        "## Section\n"
        "- item a\n"
        "* item b\n"
        "#### Deep heading\n"
    )

    blocks = _parse_markdown_blocks(markdown)

    assert blocks == [
        ("h1", "Title"),
        ("p", "Intro paragraph."),
        ("h2", "Section"),
        ("li", "item a"),
        ("li", "item b"),
        ("h3", "Deep heading"),
    ]


def test_inline_markup_is_escaped_and_converted() -> None:
    assert _inline_to_reportlab("**Tags**: a < b") == "<b>Tags</b>: a &lt; b"
    assert _inline_to_reportlab("[https://x.org](https://x.org)") == "https://x.org"
    assert _inline_to_reportlab("[PDF](https://x.org/p.pdf)") == "PDF (https://x.org/p.pdf)"


def test_same_title_from_different_urls_gets_distinct_files(tmp_path: Path) -> None:
    writer = MarkdownWriter(output_dir=tmp_path)

    first = Path(writer.write(title="Results", text="# A", key="https://a.example/p.pdf"))
    second = Path(writer.write(title="Results", text="# B", key="https://b.example/p.pdf"))
    again = Path(writer.write(title="Results", text="# A2", key="https://a.example/p.pdf"))

    assert first != second
    assert first == again
    assert re.fullmatch(r"results-[0-9a-f]{8}\.md", first.name)
    assert first.read_text(encoding="utf-8") == "# A2"
    assert second.read_text(encoding="utf-8") == "# B"
