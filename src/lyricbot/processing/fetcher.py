"""Download of user-submitted lyric documents.

Submitted URLs are arbitrary, so every download has a bounded timeout and
a size cap. Any failure raises DocumentFetchError; it is not reported to
the submitter, and the issue is retried on the next run.
"""

import asyncio
import logging
from typing import Any, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_USER_AGENT = "lyricbot/1.0"


class DocumentFetchError(Exception):
    """Raised when a document cannot be downloaded.

    Attributes:
        url: The requested URL.
        status_code: HTTP status of the response, if one was received.
    """

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")


class DocumentFetcher:
    """HTTP downloader with timeout and size limit."""

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_bytes: int = DEFAULT_MAX_BYTES,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_bytes = max_bytes
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                timeout_seconds,
                connect=min(timeout_seconds, DEFAULT_CONNECT_TIMEOUT_SECONDS),
            ),
            headers={"User-Agent": user_agent},
            follow_redirects=True,
            transport=transport,
        )

    async def fetch_text(self, url: str) -> str:
        """Download a document and decode it as text.

        Raises:
            DocumentFetchError: On transport errors, non-success status,
                a body larger than the size limit, or a download that
                does not finish within the timeout.
        """
        logger.info("Downloading document", extra={"url": url})
        try:
            content, encoding = await asyncio.wait_for(
                self._download(url), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise DocumentFetchError(url, "timeout") from exc

        # utf-8-sig drops a byte order mark left by some editors
        if encoding.lower().replace("_", "-") in ("utf-8", "utf8"):
            encoding = "utf-8-sig"
        try:
            text = content.decode(encoding, errors="replace")
        except LookupError:
            text = content.decode("utf-8-sig", errors="replace")
        logger.info(
            "Document downloaded",
            extra={"url": url, "size_bytes": len(content)},
        )
        return text

    async def _download(self, url: str) -> Tuple[bytes, str]:
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise DocumentFetchError(
                        url,
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                content = await self._read_limited(url, response)
                return content, response.encoding or "utf-8"
        except httpx.TimeoutException as exc:
            raise DocumentFetchError(url, "timeout") from exc
        except httpx.HTTPError as exc:
            raise DocumentFetchError(url, str(exc)) from exc

    async def _read_limited(self, url: str, response: httpx.Response) -> bytes:
        declared = response.headers.get("content-length")
        if declared is not None and declared.isdigit() and int(declared) > self.max_bytes:
            raise DocumentFetchError(
                url, f"document larger than {self.max_bytes} bytes", response.status_code
            )

        chunks = []
        received = 0
        async for chunk in response.aiter_bytes():
            received += len(chunk)
            if received > self.max_bytes:
                raise DocumentFetchError(
                    url, f"document larger than {self.max_bytes} bytes", response.status_code
                )
            chunks.append(chunk)
        return b"".join(chunks)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DocumentFetcher":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
