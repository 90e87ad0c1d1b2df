"""HTTP client for the table of contents and chapter pages."""
from __future__ import annotations

import logging

import httpx

from innbinder.config import HEADERS, REQUEST_TIMEOUT

log = logging.getLogger("innbinder.client")


class FetchError(Exception):
    pass


class NotFound(FetchError):
    pass


class InnClient:
    """Synchronous HTTP client.  One request at a time, no retries."""

    def __init__(self, timeout: float = REQUEST_TIMEOUT, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(
            headers=HEADERS,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def get(self, url: str) -> httpx.Response:
        """Fetch a URL. Raises FetchError on transport errors and non-200 responses."""
        log.debug("GET %s", url)
        try:
            r = self._client.get(url)
        except httpx.HTTPError as e:
            raise FetchError(f"Transport error for {url}: {e}") from e

        if r.status_code == 404:
            raise NotFound(f"Not found: {url}")

        if r.status_code != 200:
            raise FetchError(f"HTTP {r.status_code}: {url}")

        return r

    def get_html(self, url: str) -> str:
        """Fetch a URL and return the response text."""
        return self.get(url).text
