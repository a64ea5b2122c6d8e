"""Protocol interfaces for pipeline dependency typing."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Protocol

from .models import (
    ActionKind,
    ExtractedText,
    ModelReply,
    PaperMetadata,
    RawDocument,
    StructuredDocument,
    UsageEvent,
)


class FetcherInterface(Protocol):
    """Remote content fetcher."""

    def fetch(self, url: str) -> RawDocument: ...


class MetadataInterface(Protocol):
    """Bibliographic lookup for a paper URL."""

    def lookup(self, url: str) -> PaperMetadata | None: ...


class ExtractorInterface(Protocol):
    """Binary document to text lines."""

    def extract(self, raw: RawDocument) -> ExtractedText: ...


class ReconstructorInterface(Protocol):
    """Text lines to structured document."""

    def reconstruct(self, lines: ExtractedText | Iterable[str]) -> StructuredDocument: ...


class TransportInterface(Protocol):
    """Reasoning model transport."""

    @property
    def enabled(self) -> bool: ...

    def complete(
        self,
        model: str,
        messages: list[dict],
        max_tokens: int,
        system_prompt: str = "",
    ) -> ModelReply: ...


class UsageLedgerInterface(Protocol):
    """Append target for billing events."""

    def record(
        self,
        actor_id: str,
        action: ActionKind,
        cost_estimate: Decimal,
    ) -> UsageEvent | None: ...


class Clock(Protocol):
    """Source of timezone-aware timestamps."""

    def __call__(self) -> datetime: ...
