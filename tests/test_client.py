from __future__ import annotations

import unittest

import httpx

from innbinder.client import FetchError, InnClient, NotFound
from innbinder.config import HEADERS


def _client(handler) -> InnClient:
    return InnClient(transport=httpx.MockTransport(handler))


class TestInnClient(unittest.TestCase):

    def test_sends_identifying_user_agent(self):
        seen = []

        def handler(request):
            seen.append(request.headers["user-agent"])
            return httpx.Response(200, text="<p>ok</p>")

        with _client(handler) as client:
            self.assertEqual(client.get_html("https://x/toc/"), "<p>ok</p>")
        self.assertEqual(seen, [HEADERS["user-agent"]])

    def test_404_is_not_found(self):
        with _client(lambda request: httpx.Response(404)) as client:
            with self.assertRaises(NotFound):
                client.get_html("https://x/missing")

    def test_other_status_is_fetch_error(self):
        with _client(lambda request: httpx.Response(500)) as client:
            with self.assertRaises(FetchError) as ctx:
                client.get_html("https://x/broken")
        self.assertNotIsInstance(ctx.exception, NotFound)
        self.assertIn("HTTP 500", str(ctx.exception))

    def test_transport_error_is_fetch_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler) as client:
            with self.assertRaises(FetchError) as ctx:
                client.get_html("https://x/toc/")
        self.assertIsInstance(ctx.exception.__cause__, httpx.ConnectError)

    def test_follows_redirects(self):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "https://x/new"})
            return httpx.Response(200, text="moved")

        with _client(handler) as client:
            self.assertEqual(client.get_html("https://x/old"), "moved")


if __name__ == "__main__":
    unittest.main()
