"""Minimal Claude Messages API client returning text and token usage."""

from __future__ import annotations

import json
import logging
import os
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import AnalysisError, AnalysisErrorKind
from .models import ModelReply

logger = logging.getLogger(__name__)

API_KEY_ENV = "CLAUDE_API_KEY"
PLACEHOLDER_API_KEY = "YOUR_CLAUDE_API_KEY"
DEFAULT_ENDPOINT = "https://api.anthropic.com/v1/messages"


class ClaudeClient:
    """HTTP client for Claude message completion.

    Build one per process and pass it to every `PaperAnalyst`.
    """

    def __init__(
        self,
        api_key: str | None = None,
        endpoint: str | None = None,
        api_version: str = "2023-06-01",
        timeout_seconds: float = 120.0,
    ):
        self.api_key = (api_key or os.getenv(API_KEY_ENV, "")).strip()
        self.endpoint = endpoint or DEFAULT_ENDPOINT
        self.api_version = api_version
        self.timeout_seconds = timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY

    def complete(
        self,
        model: str,
        messages: list[dict],
        max_tokens: int,
        system_prompt: str = "",
    ) -> ModelReply:
        """Send one messages request.

        Returns:
            Reply text with the input and output token counts the API billed.

        Raises:
            AnalysisError: UNCONFIGURED before any network call when the key
                is missing or a placeholder; UNREACHABLE, RATE_LIMITED or
                MALFORMED for transport and protocol failures.
        """

        if not self.enabled:
            raise AnalysisError(
                f"{API_KEY_ENV} is not configured. Set it in your environment variables.",
                kind=AnalysisErrorKind.UNCONFIGURED,
            )

        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system_prompt:
            payload["system"] = system_prompt

        request = Request(
            self.endpoint,
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": self.api_version,
                "Content-Type": "application/json",
            },
            method="POST",
        )

        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:
                body = json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            raise _status_error(exc.code) from exc
        except (URLError, HTTPException, OSError) as exc:
            raise AnalysisError(
                "Reasoning model is unreachable",
                kind=AnalysisErrorKind.UNREACHABLE,
            ) from exc
        except ValueError as exc:
            raise AnalysisError(
                "Reasoning model returned a non-JSON body",
                kind=AnalysisErrorKind.MALFORMED,
            ) from exc

        return _reply_from_body(body)


def _status_error(status_code: int) -> AnalysisError:
    if status_code in (401, 403):
        kind = AnalysisErrorKind.UNCONFIGURED
    elif status_code == 429:
        kind = AnalysisErrorKind.RATE_LIMITED
    elif status_code >= 500:
        kind = AnalysisErrorKind.UNREACHABLE
    else:
        kind = AnalysisErrorKind.MALFORMED
    logger.warning("Reasoning model answered HTTP %d (%s)", status_code, kind.value)
    return AnalysisError(
        f"Reasoning model answered HTTP {status_code}",
        kind=kind,
        status_code=status_code,
    )


def _reply_from_body(body: object) -> ModelReply:
    """Build a reply from a decoded body.

    Once usage is present the call is billed, so missing or non-text content
    yields ``readable=False`` instead of an error. The caller records the cost
    first and rejects the reply afterwards.
    """

    try:
        usage = body["usage"]  # type: ignore[index]
        input_tokens = int(usage["input_tokens"])
        output_tokens = int(usage["output_tokens"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AnalysisError(
            "Reasoning model reply has no usage accounting",
            kind=AnalysisErrorKind.MALFORMED,
        ) from exc

    content = body.get("content") if isinstance(body, dict) else None
    if not isinstance(content, list):
        content = []
    text_parts = [
        part.get("text")
        for part in content
        if isinstance(part, dict) and part.get("type", "text") == "text"
    ]
    readable = any(isinstance(text, str) for text in text_parts)
    return ModelReply(
        text="".join(text for text in text_parts if isinstance(text, str)),
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        readable=readable,
    )
