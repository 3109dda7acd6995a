"""Size-capped, retrying HTTP download of remote GIF assets."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import httpx

from .cancellation import CancellationToken
from .config import DEFAULT_FETCHER_CONFIG, FetcherConfig
from .error_handling import DownloadError, IntegrityError
from .meta import compute_sha256, digests_match
from .types import GifDownloadResult, GifSource

logger = logging.getLogger(__name__)


def _parse_content_length(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None


class RemoteAssetFetcher:
    """Download a remote asset into memory under a byte budget.

    Every attempt is bounded by ``TIMEOUT_SECONDS``; failed attempts are
    retried ``MAX_RETRIES`` times with a linear backoff of
    ``BACKOFF_SECONDS * attempt``. The error of the last attempt is the one
    raised.

    Args:
        config: Download limits (DEFAULT_FETCHER_CONFIG if None)
        client: httpx client to reuse; a short-lived one is created per call
            when omitted
        sleep: Blocking sleep used between attempts
    """

    def __init__(
        self,
        config: FetcherConfig | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or DEFAULT_FETCHER_CONFIG
        self._client = client
        self._sleep = sleep

    def fetch(
        self,
        source: GifSource,
        *,
        cancellation: CancellationToken | None = None,
    ) -> GifDownloadResult:
        if self._client is not None:
            return self._fetch_with_retry(self._client, source, cancellation)
        with httpx.Client(follow_redirects=True) as client:
            return self._fetch_with_retry(client, source, cancellation)

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number *attempt* (1-based)."""
        return self.config.BACKOFF_SECONDS * attempt

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fetch_with_retry(
        self,
        client: httpx.Client,
        source: GifSource,
        cancellation: CancellationToken | None,
    ) -> GifDownloadResult:
        max_attempts = self.config.MAX_RETRIES + 1

        for attempt in range(1, max_attempts + 1):
            if cancellation is not None:
                cancellation.raise_if_cancelled("fetching")

            timeout = self.config.TIMEOUT_SECONDS
            if cancellation is not None:
                timeout = cancellation.clamp(timeout)

            logger.debug(f"Downloading GIF {source.url} (attempt {attempt}/{max_attempts})")
            try:
                return self._attempt(client, source, timeout)
            except DownloadError as e:
                logger.warning(
                    f"⚠️  Failed to download GIF (attempt {attempt}/{max_attempts}): {e}"
                )
                if attempt == max_attempts:
                    e.context.update({"url": source.url, "attempts": max_attempts})
                    raise

            delay = self.backoff_delay(attempt)
            if cancellation is not None:
                delay = cancellation.clamp(delay) or 0.0
            self._sleep(delay)

        raise DownloadError(f"No download attempts made for {source.url}")

    def _attempt(
        self, client: httpx.Client, source: GifSource, timeout: float | None
    ) -> GifDownloadResult:
        headers = {
            "User-Agent": self.config.USER_AGENT,
            "Accept": self.config.ACCEPT,
            **(source.headers or {}),
        }
        max_bytes = self.config.MAX_BYTES
        started = time.monotonic()

        try:
            with client.stream(
                "GET", source.url, headers=headers, timeout=timeout
            ) as response:
                if not response.is_success:
                    raise DownloadError(
                        f"Failed to fetch GIF: {response.status_code} {response.reason_phrase}",
                        context={"status_code": response.status_code},
                    )

                content_length = _parse_content_length(
                    response.headers.get("content-length")
                )
                if content_length is not None and content_length > max_bytes:
                    raise DownloadError(
                        f"GIF too large: {content_length} bytes (limit {max_bytes})",
                        context={"content_length": content_length},
                    )

                chunks: list[bytes] = []
                downloaded = 0

                for chunk in response.iter_bytes():
                    downloaded += len(chunk)
                    if downloaded > max_bytes:
                        raise DownloadError(
                            f"GIF exceeded max bytes ({max_bytes})",
                            context={"downloaded": downloaded},
                        )
                    if timeout is not None and time.monotonic() - started > timeout:
                        raise DownloadError(
                            f"Timeout while downloading {source.url}",
                            context={"timeout_seconds": timeout},
                        )
                    chunks.append(chunk)

                buffer = b"".join(chunks)
                if source.integrity:
                    digest = compute_sha256(buffer)
                    if not digests_match(source.integrity, digest):
                        raise IntegrityError(
                            f"Integrity check failed. Expected {source.integrity} but got {digest}",
                            context={"expected": source.integrity, "actual": digest},
                        )

                return GifDownloadResult(
                    buffer=buffer,
                    content_length=content_length,
                    etag=response.headers.get("etag"),
                    last_modified=response.headers.get("last-modified"),
                )
        except httpx.TimeoutException as e:
            raise DownloadError(f"Timeout while downloading {source.url}", cause=e) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DownloadError(f"Error downloading {source.url}: {e}", cause=e) from e
