"""Core data models for the paper ingestion and analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


@dataclass(slots=True)
class RawDocument:
    """Downloaded bytes of one remote resource."""

    content: bytes
    content_type: str
    url: str

    @property
    def byte_length(self) -> int:
        return len(self.content)


@dataclass(slots=True)
class ExtractedText:
    """Flat text lines pulled out of a document, plus its page count."""

    lines: list[str]
    page_count: int

    @property
    def byte_size(self) -> int:
        return len("\n".join(self.lines).encode("utf-8"))


class BlockKind(str, Enum):
    TITLE = "title"
    HEADING = "heading"
    SUBHEADING = "subheading"
    LIST_ITEM = "list_item"
    PARAGRAPH = "paragraph"
    BLANK = "blank"


MARKDOWN_PREFIXES = {
    BlockKind.TITLE: "# ",
    BlockKind.HEADING: "## ",
    BlockKind.SUBHEADING: "### ",
    BlockKind.LIST_ITEM: "- ",
    BlockKind.PARAGRAPH: "",
}


@dataclass(frozen=True, slots=True)
class Block:
    """One structurally classified unit of a reconstructed document."""

    kind: BlockKind
    text: str = ""

    def to_markdown(self) -> str:
        if self.kind is BlockKind.BLANK:
            return ""
        return f"{MARKDOWN_PREFIXES[self.kind]}{self.text}"


@dataclass(frozen=True, slots=True)
class StructuredDocument:
    """Ordered blocks recovered from extracted text.

    Holds at most one title block, always the first non-blank block.
    Blank blocks never appear twice in a row, first, or last.
    """

    blocks: tuple[Block, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.blocks

    @property
    def title(self) -> str | None:
        if self.blocks and self.blocks[0].kind is BlockKind.TITLE:
            return self.blocks[0].text
        return None

    def content_blocks(self) -> list[Block]:
        return [block for block in self.blocks if block.kind is not BlockKind.BLANK]

    def to_markdown(self) -> str:
        return "\n".join(block.to_markdown() for block in self.blocks).strip()

    def display_title(self) -> str:
        """Title to show for the paper, falling back to its first line."""

        if self.title:
            return self.title
        for block in self.content_blocks():
            text = block.to_markdown().lstrip("#").strip()
            if text:
                return text
        return "Untitled Paper"


class AnalysisTask(str, Enum):
    FULL_ANALYSIS = "full_analysis"
    ANNOTATION = "annotation"
    CHAT = "chat"


CHAT_ROLES = ("user", "assistant")


@dataclass(frozen=True, slots=True)
class ChatTurn:
    """One prior message of a paper conversation."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in CHAT_ROLES:
            raise ValueError(f"Chat role must be one of {CHAT_ROLES}, got {self.role!r}")


@dataclass(slots=True)
class AnalysisRequest:
    """Everything sent to the reasoning model for one call."""

    task: AnalysisTask
    text: str
    excerpt: str = ""
    question: str = ""
    turns: tuple[ChatTurn, ...] = ()


class Category(str, Enum):
    NEUROSCIENCE = "Neuroscience"
    COMPUTER_SCIENCE = "Computer Science"
    BIOLOGY = "Biology"
    PHYSICS = "Physics"
    MATHEMATICS = "Mathematics"
    MEDICINE = "Medicine"
    CHEMISTRY = "Chemistry"
    ENGINEERING = "Engineering"
    PSYCHOLOGY = "Psychology"
    ECONOMICS = "Economics"
    OTHER = "Other"


@dataclass(slots=True)
class PaperAnalysis:
    """Normalized result of a full-paper analysis."""

    summary: str
    rating: int
    category: str
    tags: list[str] = field(default_factory=list)
    key_findings: list[str] = field(default_factory=list)
    cost_estimate: Decimal = Decimal("0")

    def full_summary(self) -> str:
        """Summary text with key findings appended as a bullet list."""

        if not self.key_findings:
            return self.summary
        findings = "\n".join(f"- {item}" for item in self.key_findings)
        return f"{self.summary}\n\n**Key Findings:**\n{findings}"


@dataclass(slots=True)
class AssistantReply:
    """Free-text answer for an annotation question or chat turn."""

    response_text: str
    cost_estimate: Decimal = Decimal("0")


@dataclass(frozen=True, slots=True)
class ModelReply:
    """Raw reasoning-model output with the usage it reported."""

    text: str
    input_tokens: int
    output_tokens: int
    readable: bool = True


class ActionKind(str, Enum):
    PAPER_ANALYSIS = "paper_analysis"
    ANNOTATION_QUERY = "annotation_query"
    CHAT_QUERY = "chat_query"


@dataclass(frozen=True, slots=True)
class UsageEvent:
    """Immutable billing record for one reasoning-model invocation."""

    event_id: str
    actor_id: str
    action: ActionKind
    cost_estimate: Decimal
    timestamp: datetime


@dataclass(slots=True)
class UsageSummary:
    """Aggregated spend of one actor."""

    actor_id: str
    total_queries: int
    total_cost: Decimal
    monthly_cost: Decimal
    period_start: datetime
    period_end: datetime


@dataclass(slots=True)
class PaperMetadata:
    """Bibliographic details published by the hosting service."""

    source: str
    title: str = ""
    authors: list[str] = field(default_factory=list)
    abstract: str = ""
    published_date: str | None = None
    pdf_url: str | None = None


@dataclass(slots=True)
class IngestResult:
    """What the persistence collaborator stores after a successful ingest."""

    url: str
    pdf_url: str
    byte_size: int
    page_count: int
    document: StructuredDocument
    metadata: PaperMetadata | None = None

    def display_title(self) -> str:
        """Service-reported title when known, else the reconstructed one."""

        if self.metadata is not None and self.metadata.title:
            return self.metadata.title
        return self.document.display_title()
