"""Bounded HTTP download of remote paper content."""

from __future__ import annotations

import logging
import time
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import FetchError, FetchErrorKind
from .models import RawDocument
from .resolver import is_http_url

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class HttpFetcher:
    """Download a URL with an overall deadline and a hard size ceiling."""

    def __init__(
        self,
        timeout_seconds: float = 60.0,
        max_bytes: int = 100 * 1024 * 1024,
        user_agent: str = "Skim-Research-Reader/1.0",
        chunk_size: int = CHUNK_SIZE,
    ):
        self.timeout_seconds = timeout_seconds
        self.max_bytes = max_bytes
        self.user_agent = user_agent
        self.chunk_size = chunk_size

    def fetch(self, url: str) -> RawDocument:
        """Fetch one URL.

        Raises:
            FetchError: TIMEOUT, TOO_LARGE, HTTP_STATUS or NETWORK_ERROR.
        """

        if not is_http_url(url):
            raise FetchError(
                f"Refusing to fetch non-HTTP URL {url!r}",
                kind=FetchErrorKind.NETWORK_ERROR,
            )

        deadline = time.monotonic() + self.timeout_seconds
        try:
            request = Request(
                url,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/pdf, */*",
                },
                method="GET",
            )
            with urlopen(request, timeout=self.timeout_seconds) as response:
                content_type = response.headers.get("Content-Type", "") or ""
                self._check_declared_length(url, response.headers.get("Content-Length"))
                content = self._read_bounded(url, response, deadline)
        except FetchError:
            raise
        except HTTPError as exc:
            raise FetchError(
                f"HTTP {exc.code} while fetching {url}",
                kind=FetchErrorKind.HTTP_STATUS,
                status_code=exc.code,
            ) from exc
        except URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise FetchError(f"Timed out fetching {url}", kind=FetchErrorKind.TIMEOUT) from exc
            raise FetchError(
                f"Network error fetching {url}: {exc.reason}",
                kind=FetchErrorKind.NETWORK_ERROR,
            ) from exc
        except TimeoutError as exc:
            raise FetchError(f"Timed out fetching {url}", kind=FetchErrorKind.TIMEOUT) from exc
        except (OSError, HTTPException, ValueError) as exc:
            raise FetchError(
                f"Network error fetching {url}: {exc}",
                kind=FetchErrorKind.NETWORK_ERROR,
            ) from exc

        logger.info("Fetched %s (%d bytes, %s)", url, len(content), content_type or "unknown type")
        return RawDocument(content=content, content_type=content_type, url=url)

    def _check_declared_length(self, url: str, header: str | None) -> None:
        if not header:
            return
        try:
            declared = int(header)
        except ValueError:
            return
        if declared > self.max_bytes:
            raise FetchError(
                f"{url} declares {declared} bytes, limit is {self.max_bytes}",
                kind=FetchErrorKind.TOO_LARGE,
            )

    def _read_bounded(self, url: str, response, deadline: float) -> bytes:  # type: ignore[no-untyped-def]
        buffer = bytearray()
        while True:
            if time.monotonic() > deadline:
                raise FetchError(f"Timed out fetching {url}", kind=FetchErrorKind.TIMEOUT)
            chunk = response.read(self.chunk_size)
            if not chunk:
                return bytes(buffer)
            buffer.extend(chunk)
            if len(buffer) > self.max_bytes:
                raise FetchError(
                    f"{url} exceeded {self.max_bytes} bytes",
                    kind=FetchErrorKind.TOO_LARGE,
                )
