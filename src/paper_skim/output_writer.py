"""Write analysis reports as markdown and, optionally, readable PDF."""

from __future__ import annotations

import hashlib
import html
import re
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import ListFlowable, ListItem, Paragraph, SimpleDocTemplate, Spacer

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.*)$")
BULLET_PATTERN = re.compile(r"^[-*]\s+(.*)$")
MAX_STEM_LENGTH = 80
KEY_HASH_LENGTH = 8


def slugify(title: str) -> str:
    """File-name friendly form of a paper title."""

    slug = SLUG_PATTERN.sub("-", title.lower()).strip("-")
    return slug[:MAX_STEM_LENGTH].rstrip("-") or "paper"


class MarkdownWriter:
    """Write a report to `<output_dir>/<slug>.md` and optionally `<slug>.pdf`."""

    def __init__(self, output_dir: str | Path, output_pdf: bool = False):
        self.output_dir = Path(output_dir)
        self.output_pdf = output_pdf

    def write(self, title: str, text: str, key: str | None = None) -> str:
        """Write the report and return the markdown path.

        `key` (usually the paper URL) adds a short hash to the file name so
        papers that share a title do not overwrite each other.
        """

        self.output_dir.mkdir(parents=True, exist_ok=True)
        stem = slugify(title)
        if key:
            stem = f"{stem}-{hashlib.sha1(key.encode('utf-8')).hexdigest()[:KEY_HASH_LENGTH]}"
        markdown_path = self.output_dir / f"{stem}.md"
        markdown_path.write_text(text, encoding="utf-8")

        if self.output_pdf:
            self._write_pdf(title=title, text=text, output_path=self.output_dir / f"{stem}.pdf")
        return str(markdown_path)

    def _write_pdf(self, title: str, text: str, output_path: Path) -> None:
        story = _build_story(_parse_markdown_blocks(text))
        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=A4,
            leftMargin=18 * mm,
            rightMargin=18 * mm,
            topMargin=16 * mm,
            bottomMargin=18 * mm,
            title=title,
        )
        doc.build(story, onFirstPage=_draw_footer, onLaterPages=_draw_footer)


def _draw_footer(canvas, doc) -> None:  # type: ignore[no-untyped-def]
    canvas.saveState()
    canvas.setFont("Helvetica", 9)
    canvas.setFillColor(colors.grey)
    canvas.drawRightString(A4[0] - 18 * mm, 10 * mm, f"Page {canvas.getPageNumber()}")
    canvas.restoreState()


def _build_story(blocks: list[tuple[str, str]]):
    styles = _build_styles()
    spacing = {"h1": 10, "h2": 6, "h3": 4, "p": 6}
    story = []
    i = 0

    while i < len(blocks):
        kind, content = blocks[i]

        if kind == "li":
            items = []
            while i < len(blocks) and blocks[i][0] == "li":
                items.append(
                    ListItem(Paragraph(_inline_to_reportlab(blocks[i][1]), styles["li"]), leftIndent=8)
                )
                i += 1
            story.append(ListFlowable(items, bulletType="bullet", leftIndent=12, bulletFontName="Helvetica"))
            story.append(Spacer(1, 8))
            continue

        story.append(Paragraph(_inline_to_reportlab(content), styles[kind]))
        story.append(Spacer(1, spacing[kind]))
        i += 1

    return story


def _build_styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = colors.HexColor("#111827")
    return {
        "h1": ParagraphStyle(
            "H1", parent=base["Heading1"], fontName="Helvetica-Bold", fontSize=18, leading=22, spaceAfter=4
        ),
        "h2": ParagraphStyle(
            "H2",
            parent=base["Heading2"],
            fontName="Helvetica-Bold",
            fontSize=14,
            leading=18,
            textColor=colors.HexColor("#1f2937"),
        ),
        "h3": ParagraphStyle(
            "H3",
            parent=base["Heading3"],
            fontName="Helvetica-Bold",
            fontSize=12,
            leading=15,
            textColor=colors.HexColor("#374151"),
        ),
        "p": ParagraphStyle("P", parent=base["BodyText"], fontName="Helvetica", fontSize=10.5, leading=15, textColor=body),
        "li": ParagraphStyle("LI", parent=base["BodyText"], fontName="Helvetica", fontSize=10.5, leading=14, textColor=body),
    }


def _parse_markdown_blocks(text: str) -> list[tuple[str, str]]:
    """Split report markdown into (kind, text) pairs; deep headings map to h3."""

    blocks: list[tuple[str, str]] = []
    for raw in text.splitlines():
        stripped = raw.strip()
        if not stripped:
            continue

        heading = HEADING_PATTERN.match(stripped)
        if heading:
            level = min(len(heading.group(1)), 3)
            blocks.append((f"h{level}", heading.group(2).strip()))
            continue

        bullet = BULLET_PATTERN.match(stripped)
        if bullet:
            blocks.append(("li", bullet.group(1).strip()))
            continue

        blocks.append(("p", stripped))

    return blocks


def _inline_to_reportlab(text: str) -> str:
    escaped = html.escape(text)

    # [label](url) -> label (url), unless both are the same
    escaped = re.sub(
        r"\[([^\]]+)\]\(([^)]+)\)",
        lambda m: m.group(1) if m.group(1) == m.group(2) else f"{m.group(1)} ({m.group(2)})",
        escaped,
    )
    escaped = re.sub(r"\*\*([^*]+)\*\*", r"<b>\1</b>", escaped)
    return escaped
