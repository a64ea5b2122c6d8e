import pytest

from paper_skim.errors import (
    NETWORK_MESSAGE,
    PARSING_MESSAGE,
    UNCONFIGURED_MESSAGE,
    AnalysisError,
    AnalysisErrorKind,
    ExtractError,
    ExtractErrorKind,
    FetchError,
    FetchErrorKind,
    ParseError,
    ParseErrorKind,
    user_message,
)


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (FetchError("HTTP 503 from https://host/internal", kind=FetchErrorKind.HTTP_STATUS, status_code=503), NETWORK_MESSAGE),
        (FetchError("x", kind=FetchErrorKind.TOO_LARGE), NETWORK_MESSAGE),
        (AnalysisError("x", kind=AnalysisErrorKind.UNREACHABLE), NETWORK_MESSAGE),
        (AnalysisError("x", kind=AnalysisErrorKind.RATE_LIMITED), NETWORK_MESSAGE),
        (AnalysisError("x", kind=AnalysisErrorKind.UNCONFIGURED), UNCONFIGURED_MESSAGE),
        (AnalysisError("x", kind=AnalysisErrorKind.MALFORMED), PARSING_MESSAGE),
        (ExtractError("x", kind=ExtractErrorKind.CORRUPT_DOCUMENT), PARSING_MESSAGE),
        (ParseError("x", kind=ParseErrorKind.NO_JSON_FOUND), PARSING_MESSAGE),
    ],
)
def test_user_message_hides_remote_details(error: Exception, expected: str) -> None:
    message = user_message(error)

    assert message == expected
    assert "https://" not in message


def test_errors_keep_kind_and_status() -> None:
    error = FetchError("HTTP 404", kind=FetchErrorKind.HTTP_STATUS, status_code=404)

    assert error.kind is FetchErrorKind.HTTP_STATUS
    assert error.status_code == 404
    assert str(error) == "HTTP 404"
    assert isinstance(error, RuntimeError)
