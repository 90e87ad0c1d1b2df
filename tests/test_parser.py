from __future__ import annotations

import unittest

from bs4 import BeautifulSoup

from fakes import TOC_HTML, TOC_URL, chapter_page
from innbinder.models import ChapterLink
from innbinder.parser import (
    MISSING_MAIN_CONTENT,
    TocNotFound,
    disambiguate_key,
    extract_main_content,
    parse_toc,
)


def _wrapper(title: str | None, links: list[tuple[str, str]]) -> str:
    heading = f'<h2 class="volume-title">{title}</h2>' if title is not None else ""
    entries = "".join(
        f'<div class="chapter-entry"><span class="body-web"><a href="{href}">{text}</a></span></div>'
        for text, href in links
    )
    return f'<div class="volume-wrapper">{heading}<div class="book-body">{entries}</div></div>'


def _toc(*wrappers: str) -> str:
    return f'<html><body><div id="table-of-contents">{"".join(wrappers)}</div></body></html>'


class TestParseToc(unittest.TestCase):

    def test_example_volume(self):
        html = _toc(_wrapper("Volume 1", [("Intro", "/c1"), ("Ch 2", "/c2")]))
        result = parse_toc(html, "https://x/")
        self.assertEqual(
            result,
            {"Volume 1": [ChapterLink("Intro", "https://x/c1"), ChapterLink("Ch 2", "https://x/c2")]},
        )

    def test_trims_titles_and_keeps_document_order(self):
        result = parse_toc(TOC_HTML, TOC_URL)
        self.assertEqual(list(result), ["Volume 1", "Volume 2"])
        self.assertEqual(
            [link.name for link in result["Volume 1"]], ["Intro", "Ch 2"]
        )
        self.assertEqual(result["Volume 2"], [ChapterLink("What? Now", "https://x/c3")])

    def test_one_entry_per_wrapper(self):
        wrappers = [_wrapper(f"Vol {i}", [("c", f"/v{i}")]) for i in range(1, 6)]
        result = parse_toc(_toc(*wrappers), "https://x/")
        self.assertEqual(list(result), [f"Vol {i}" for i in range(1, 6)])

    def test_duplicate_titles_get_position_suffix(self):
        html = _toc(
            _wrapper("Volume", [("a", "/a")]),
            _wrapper("Other", [("b", "/b")]),
            _wrapper("Volume", [("c", "/c")]),
        )
        result = parse_toc(html, "https://x/")
        self.assertEqual(list(result), ["Volume", "Other", "Volume (3)"])
        self.assertEqual(result["Volume"][0].name, "a")
        self.assertEqual(result["Volume (3)"][0].name, "c")

    def test_blank_title_is_untitled_with_position(self):
        html = _toc(_wrapper("Named", []), _wrapper("   ", []), _wrapper(None, []))
        result = parse_toc(html, "https://x/")
        self.assertEqual(list(result), ["Named", "Untitled 2", "Untitled 3"])

    def test_links_outside_chapter_structure_ignored(self):
        html = _toc(
            '<div class="volume-wrapper"><h2 class="volume-title">V</h2>'
            '<a href="/stray">Stray</a>'
            '<div class="book-body"><div class="chapter-entry">'
            '<span class="body-web"><a href="/ok">Ok</a></span>'
            '<span class="body-audio"><a href="/audio">Audio</a></span>'
            "</div></div></div>"
        )
        result = parse_toc(html, "https://x/")
        self.assertEqual(result["V"], [ChapterLink("Ok", "https://x/ok")])

    def test_bad_href_falls_back_to_raw_value(self):
        html = _toc(_wrapper("V", [("Broken", "http://[::1")]))
        result = parse_toc(html, "https://x/")
        self.assertEqual(result["V"], [ChapterLink("Broken", "http://[::1")])

    def test_missing_section_is_not_found(self):
        result = parse_toc("<html><body><p>nothing</p></body></html>", "https://x/")
        self.assertIsInstance(result, TocNotFound)
        self.assertIn("table-of-contents", result.reason)

    def test_missing_wrappers_is_not_found(self):
        result = parse_toc('<div id="table-of-contents"><p>empty</p></div>', "https://x/")
        self.assertIsInstance(result, TocNotFound)


class TestDisambiguateKey(unittest.TestCase):

    def test_free_key_unchanged(self):
        self.assertEqual(disambiguate_key({}, "Volume 1", 1), "Volume 1")

    def test_taken_key_gets_position(self):
        self.assertEqual(disambiguate_key({"Volume 1": []}, "Volume 1", 4), "Volume 1 (4)")

    def test_suffixed_key_never_overwrites(self):
        mapping = {"V": [], "V (2)": []}
        key = disambiguate_key(mapping, "V", 2)
        self.assertNotIn(key, mapping)
        self.assertEqual(key, "V (2) (2)")


class TestExtractMainContent(unittest.TestCase):

    def test_removes_navigation_links_only(self):
        body = extract_main_content(chapter_page("one"))
        self.assertNotIn("Previous Chapter", body)
        self.assertNotIn("next chapter", body)
        self.assertIn("<p>one</p>", body)
        self.assertIn("Wiki", body)

    def test_returns_outer_markup(self):
        body = extract_main_content(chapter_page("one"))
        el = BeautifulSoup(body, "lxml").find(id="main-content")
        self.assertIsNotNone(el)
        self.assertTrue(body.startswith("<div"))

    def test_partial_text_match_is_kept(self):
        html = "<div id='main-content'><a href='/x'>Next Chapter Preview</a></div>"
        self.assertIn("Next Chapter Preview", extract_main_content(html))

    def test_missing_main_content_placeholder(self):
        self.assertEqual(extract_main_content("<p>no body</p>"), MISSING_MAIN_CONTENT)


if __name__ == "__main__":
    unittest.main()
