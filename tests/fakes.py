"""Test doubles and sample pages shared by the test modules."""
from __future__ import annotations

from innbinder.client import FetchError, NotFound

TOC_URL = "https://x/toc/"

TOC_HTML = """
<html><body>
<div id="table-of-contents">
  <div class="volume-wrapper">
    <h2 class="volume-title"> Volume 1 </h2>
    <div class="book-body">
      <div class="chapter-entry"><span class="body-web"><a href="/c1"> Intro </a></span></div>
      <div class="chapter-entry"><span class="body-web"><a href="/c2">Ch 2</a></span></div>
    </div>
  </div>
  <div class="volume-wrapper">
    <h2 class="volume-title">Volume 2</h2>
    <div class="book-body">
      <div class="chapter-entry"><span class="body-web"><a href="https://x/c3">What? Now</a></span></div>
    </div>
  </div>
</div>
</body></html>
"""


def chapter_page(text: str) -> str:
    return (
        "<html><body><div id='main-content'>"
        f"<a href='/prev'>Previous Chapter</a><p>{text}</p>"
        "<a href='/next'> next chapter </a><a href='/wiki'>Wiki</a>"
        "</div></body></html>"
    )


DEFAULT_PAGES = {
    TOC_URL: TOC_HTML,
    "https://x/c1": chapter_page("one"),
    "https://x/c2": chapter_page("two"),
    "https://x/c3": chapter_page("three"),
}


class FakeClient:
    """Serves canned HTML and records every requested URL."""

    def __init__(self, pages: dict[str, str] | None = None, errors: dict[str, Exception] | None = None):
        self.pages = dict(DEFAULT_PAGES if pages is None else pages)
        self.errors = errors or {}
        self.calls: list[str] = []

    def get_html(self, url: str) -> str:
        self.calls.append(url)
        if url in self.errors:
            raise self.errors[url]
        if url not in self.pages:
            raise NotFound(f"Not found: {url}")
        return self.pages[url]

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class DownClient(FakeClient):
    """Every request fails at the transport level."""

    def get_html(self, url: str) -> str:
        self.calls.append(url)
        raise FetchError(f"Transport error for {url}: connection refused")
