"""Parsing and normalization of reasoning-model replies."""

from __future__ import annotations

import json
import math
import re
from decimal import Decimal
from typing import Any, Callable

from .errors import ParseError, ParseErrorKind
from .models import Category, PaperAnalysis

FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")

DEFAULT_RATING = 5
MIN_RATING = 1
MAX_RATING = 10
MAX_TAGS = 8
CATEGORY_VALUES = frozenset(item.value for item in Category)


def _load_object(text: str) -> dict | None:
    try:
        value = json.loads(text)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def _parse_whole(raw: str) -> dict | None:
    return _load_object(raw)


def _parse_fenced(raw: str) -> dict | None:
    match = FENCED_BLOCK_PATTERN.search(raw)
    if not match:
        return None
    return _load_object(match.group(1).strip())


def _parse_braces(raw: str) -> dict | None:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return None
    return _load_object(raw[start : end + 1])


PARSE_ATTEMPTS: tuple[Callable[[str], dict | None], ...] = (
    _parse_whole,
    _parse_fenced,
    _parse_braces,
)


def parse_model_json(raw: str) -> dict:
    """Parse the first JSON object found in a model reply.

    Tries the whole text, then the first fenced code block, then the span from
    the first ``{`` to the last ``}``.

    Raises:
        ParseError: If no attempt yields a JSON object.
    """

    for attempt in PARSE_ATTEMPTS:
        parsed = attempt(raw)
        if parsed is not None:
            return parsed
    raise ParseError("No JSON object found in model reply", kind=ParseErrorKind.NO_JSON_FOUND)


def normalize_rating(value: Any) -> int:
    """Clamp a rating into 1-10, defaulting to 5 when it is not a number."""

    if isinstance(value, bool) or value is None:
        return DEFAULT_RATING
    if isinstance(value, int):
        rating = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return DEFAULT_RATING
        rating = int(value)
    elif isinstance(value, str):
        match = LEADING_INT_PATTERN.match(value)
        if not match:
            return DEFAULT_RATING
        rating = int(match.group(1))
    else:
        return DEFAULT_RATING
    return max(MIN_RATING, min(MAX_RATING, rating))


def normalize_category(value: Any) -> str:
    if isinstance(value, str) and value in CATEGORY_VALUES:
        return value
    return Category.OTHER.value


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def normalize_analysis(payload: dict, cost_estimate: Decimal = Decimal("0")) -> PaperAnalysis:
    """Coerce a parsed payload into a well-formed `PaperAnalysis`."""

    summary = payload.get("summary")
    return PaperAnalysis(
        summary=summary if isinstance(summary, str) else "",
        rating=normalize_rating(payload.get("rating")),
        category=normalize_category(payload.get("category")),
        tags=_string_list(payload.get("tags"))[:MAX_TAGS],
        key_findings=_string_list(payload.get("keyFindings")),
        cost_estimate=cost_estimate,
    )


def parse_analysis(raw: str, cost_estimate: Decimal = Decimal("0")) -> PaperAnalysis:
    return normalize_analysis(parse_model_json(raw), cost_estimate=cost_estimate)
