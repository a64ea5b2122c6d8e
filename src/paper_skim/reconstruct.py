"""Heuristic recovery of document structure from flat extracted text.

Every line is classified by the first matching rule in `RULES`:

1. ``section_heading``  - canonical research-paper section names, optionally
   labelled ``1``, ``2.`` or ``IV.``; becomes a ``##`` heading.
2. ``subsection_heading`` - multi-level numbering such as ``2.1`` or ``3.1.2``
   on a line shorter than 100 characters; becomes a ``###`` heading.
3. ``title`` - the first substantial line near the top of the document.
4. ``bullet`` - bullet glyphs, rewritten as list items without the glyph.
5. ``enumerated`` - ``(1)`` or ``a)`` items, kept verbatim as list items.
6. ``paragraph`` - everything else.

Runs of blank lines collapse to one separator and the output never starts or
ends with one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from .models import Block, BlockKind, ExtractedText, StructuredDocument

SECTION_NAMES = (
    r"abstract",
    r"introduction",
    r"background",
    r"methods?",
    r"methodology",
    r"results?",
    r"discussion",
    r"conclusions?",
    r"references",
    r"acknowledge?ments?",
    r"appendix",
    r"supplementary",
    r"related work",
    r"literature review",
    r"future work",
    r"limitations",
)
SECTION_PATTERN = re.compile(
    r"^(?:(?:\d+|[IVXLC]+)\.?\s+)?(?:" + "|".join(SECTION_NAMES) + r")[.:]?$",
    re.IGNORECASE,
)
SUBSECTION_PATTERN = re.compile(r"^\d+\.\d+(?:\.\d+)*\.?\s+")
BULLET_PATTERN = re.compile(r"^[-•‣◦⁃∙]\s+")
ENUMERATED_PATTERN = re.compile(r"^(?:\(\d+\)|[a-z]\))\s")

SUBSECTION_MAX_LENGTH = 100
TITLE_WINDOW_LINES = 5
TITLE_MIN_LENGTH = 10


@dataclass(slots=True)
class LineState:
    """What the rules may know about the document so far."""

    line_index: int = 0
    has_content: bool = False


@dataclass(frozen=True, slots=True)
class Rule:
    """A named (predicate, transform) pair."""

    name: str
    matches: Callable[[str, LineState], bool]
    build: Callable[[str], Block]


def _is_title(line: str, state: LineState) -> bool:
    return (
        state.line_index < TITLE_WINDOW_LINES
        and not state.has_content
        and len(line) > TITLE_MIN_LENGTH
    )


RULES: tuple[Rule, ...] = (
    Rule(
        name="section_heading",
        matches=lambda line, state: bool(SECTION_PATTERN.match(line)),
        build=lambda line: Block(BlockKind.HEADING, line),
    ),
    Rule(
        name="subsection_heading",
        matches=lambda line, state: bool(SUBSECTION_PATTERN.match(line))
        and len(line) < SUBSECTION_MAX_LENGTH,
        build=lambda line: Block(BlockKind.SUBHEADING, line),
    ),
    Rule(
        name="title",
        matches=_is_title,
        build=lambda line: Block(BlockKind.TITLE, line),
    ),
    Rule(
        name="bullet",
        matches=lambda line, state: bool(BULLET_PATTERN.match(line)),
        build=lambda line: Block(BlockKind.LIST_ITEM, BULLET_PATTERN.sub("", line, count=1)),
    ),
    Rule(
        name="enumerated",
        matches=lambda line, state: bool(ENUMERATED_PATTERN.match(line)),
        build=lambda line: Block(BlockKind.LIST_ITEM, line),
    ),
    Rule(
        name="paragraph",
        matches=lambda line, state: True,
        build=lambda line: Block(BlockKind.PARAGRAPH, line),
    ),
)

_SEPARATED_KINDS = {BlockKind.HEADING, BlockKind.SUBHEADING}
_BLANK = Block(BlockKind.BLANK)


def classify(line: str, state: LineState, rules: tuple[Rule, ...] = RULES) -> tuple[str, Block]:
    """Return the name of the first matching rule and the block it builds."""

    for rule in rules:
        if rule.matches(line, state):
            return rule.name, rule.build(line)
    return "paragraph", Block(BlockKind.PARAGRAPH, line)


@dataclass(slots=True)
class _DocumentBuilder:
    blocks: list[Block] = field(default_factory=list)

    def blank(self) -> None:
        if self.blocks and self.blocks[-1].kind is not BlockKind.BLANK:
            self.blocks.append(_BLANK)

    def add(self, block: Block) -> None:
        if block.kind in _SEPARATED_KINDS:
            self.blank()
            self.blocks.append(block)
            self.blank()
        elif block.kind is BlockKind.TITLE:
            self.blocks.append(block)
            self.blank()
        else:
            self.blocks.append(block)

    def build(self) -> StructuredDocument:
        while self.blocks and self.blocks[-1].kind is BlockKind.BLANK:
            self.blocks.pop()
        return StructuredDocument(blocks=tuple(self.blocks))


class StructureReconstructor:
    """Convert extracted lines into a `StructuredDocument`. Never fails."""

    def __init__(self, rules: tuple[Rule, ...] = RULES):
        self.rules = rules

    def reconstruct(self, lines: ExtractedText | Iterable[str]) -> StructuredDocument:
        if isinstance(lines, ExtractedText):
            lines = lines.lines

        builder = _DocumentBuilder()
        state = LineState()
        for index, raw_line in enumerate(lines):
            state.line_index = index
            line = raw_line.strip()
            if not line:
                builder.blank()
                continue

            _, block = classify(line, state, self.rules)
            builder.add(block)
            state.has_content = True

        return builder.build()


def reconstruct_text(raw_text: str) -> StructuredDocument:
    """Reconstruct a document from one block of raw text."""

    return StructureReconstructor().reconstruct(raw_text.splitlines())
