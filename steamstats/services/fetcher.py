"""HTTP fetcher for the stats page: one GET per tick, bounded timeout, no retries."""

import asyncio
from typing import Any

import httpx
import structlog

from .errors import NetworkError

log = structlog.stdlib.get_logger()

USER_AGENT = "steamstats/1.0 (+periodic player count archive)"


class FetcherService:
    """Fetches a page body in a single attempt; a failed fetch skips the tick."""

    def __init__(self, timeout: float = 60.0, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds
            client: Pre-built client (tests inject one with a mock transport)
        """
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )
        log.debug("Fetcher service initialized", timeout=timeout)

    async def fetch(self, url: str) -> bytes:
        """GET ``url`` and return the response body.

        Raises:
            NetworkError: On transport errors, timeouts, non-200 statuses or an empty body
        """
        log.debug("Fetching stats page", url=url)
        try:
            # httpx times each phase separately; wait_for bounds the whole request
            response = await asyncio.wait_for(self._client.get(url, timeout=self.timeout), self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            log.warning("Fetch timed out", url=url, timeout=self.timeout, error=str(e))
            raise NetworkError("The request timed out.", original_error=e, url=url) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("Fetch failed", url=url, error=str(e), error_type=type(e).__name__)
            raise NetworkError("A network error occurred.", original_error=e, url=url) from e

        if response.status_code != httpx.codes.OK:
            log.warning("Unexpected status", url=url, status_code=response.status_code)
            raise NetworkError(
                f"HTTP error {response.status_code} occurred.",
                url=url,
                status_code=response.status_code,
            )

        body = response.content
        if not body:
            log.warning("Empty response body", url=url)
            raise NetworkError("The server returned an empty body.", url=url, status_code=response.status_code)

        log.info("Fetched stats page", url=url, content_length=len(body))
        return body

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._client.aclose()
        log.debug("HTTP client closed")

    async def __aenter__(self) -> "FetcherService":
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.close()
