"""Error taxonomy shared by the fetch, extract and analysis stages."""

from __future__ import annotations

from enum import Enum


class FetchErrorKind(str, Enum):
    TIMEOUT = "timeout"
    TOO_LARGE = "too_large"
    HTTP_STATUS = "http_status"
    NETWORK_ERROR = "network_error"


class ExtractErrorKind(str, Enum):
    CORRUPT_DOCUMENT = "corrupt_document"
    UNSUPPORTED_FORMAT = "unsupported_format"
    PAGE_LIMIT_EXCEEDED = "page_limit_exceeded"


class AnalysisErrorKind(str, Enum):
    UNCONFIGURED = "unconfigured"
    UNREACHABLE = "unreachable"
    RATE_LIMITED = "rate_limited"
    MALFORMED = "malformed"


class ParseErrorKind(str, Enum):
    NO_JSON_FOUND = "no_json_found"


class PaperSkimError(RuntimeError):
    """Base class for pipeline failures."""

    retryable_kinds: frozenset = frozenset()

    def __init__(self, message: str, *, kind: Enum, status_code: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in self.retryable_kinds


class FetchError(PaperSkimError):
    retryable_kinds = frozenset({FetchErrorKind.NETWORK_ERROR, FetchErrorKind.TIMEOUT})


class ExtractError(PaperSkimError):
    pass


class AnalysisError(PaperSkimError):
    retryable_kinds = frozenset({AnalysisErrorKind.UNREACHABLE, AnalysisErrorKind.RATE_LIMITED})


class ParseError(PaperSkimError):
    pass


NETWORK_MESSAGE = "Could not reach the paper or the analysis service. Please try again later."
PARSING_MESSAGE = "The paper or its analysis could not be read. Try a different PDF link."
UNCONFIGURED_MESSAGE = "AI analysis is not configured on this server."


def user_message(exc: Exception) -> str:
    """Map a failure to one user-facing sentence without remote details."""

    if isinstance(exc, AnalysisError) and exc.kind is AnalysisErrorKind.UNCONFIGURED:
        return UNCONFIGURED_MESSAGE
    if isinstance(exc, FetchError):
        return NETWORK_MESSAGE
    if isinstance(exc, AnalysisError) and exc.kind is not AnalysisErrorKind.MALFORMED:
        return NETWORK_MESSAGE
    return PARSING_MESSAGE
