import pytest

from paper_skim.errors import (
    AnalysisError,
    AnalysisErrorKind,
    ExtractError,
    ExtractErrorKind,
    FetchError,
    FetchErrorKind,
    ParseError,
    ParseErrorKind,
)
from paper_skim.retry import call_with_retry, is_retryable


class Flaky:
    def __init__(self, failures: list[Exception], result: str = "ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (FetchError("x", kind=FetchErrorKind.NETWORK_ERROR), True),
        (FetchError("x", kind=FetchErrorKind.TIMEOUT), True),
        (FetchError("x", kind=FetchErrorKind.TOO_LARGE), False),
        (FetchError("x", kind=FetchErrorKind.HTTP_STATUS, status_code=404), False),
        (ExtractError("x", kind=ExtractErrorKind.CORRUPT_DOCUMENT), False),
        (AnalysisError("x", kind=AnalysisErrorKind.UNREACHABLE), True),
        (AnalysisError("x", kind=AnalysisErrorKind.RATE_LIMITED), True),
        (AnalysisError("x", kind=AnalysisErrorKind.UNCONFIGURED), False),
        (AnalysisError("x", kind=AnalysisErrorKind.MALFORMED), False),
        (ParseError("x", kind=ParseErrorKind.NO_JSON_FOUND), False),
        (ValueError("x"), False),
    ],
)
def test_is_retryable(error: Exception, expected: bool) -> None:
    assert is_retryable(error) is expected


def test_retries_transient_failures_with_doubling_backoff() -> None:
    sleeps: list[float] = []
    fn = Flaky(
        [
            FetchError("x", kind=FetchErrorKind.TIMEOUT),
            AnalysisError("x", kind=AnalysisErrorKind.RATE_LIMITED),
        ]
    )

    assert call_with_retry(fn, attempts=3, backoff_seconds=2.0, sleep=sleeps.append) == "ok"
    assert fn.calls == 3
    assert sleeps == [2.0, 4.0]


def test_non_retryable_failure_is_raised_immediately() -> None:
    sleeps: list[float] = []
    fn = Flaky([ParseError("x", kind=ParseErrorKind.NO_JSON_FOUND)])

    with pytest.raises(ParseError):
        call_with_retry(fn, sleep=sleeps.append)

    assert fn.calls == 1
    assert sleeps == []


def test_last_retryable_failure_propagates() -> None:
    fn = Flaky([FetchError("x", kind=FetchErrorKind.NETWORK_ERROR)] * 5)

    with pytest.raises(FetchError):
        call_with_retry(fn, attempts=2, sleep=lambda _: None)

    assert fn.calls == 2
