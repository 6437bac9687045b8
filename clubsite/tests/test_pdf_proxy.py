import unittest

import requests
from requests.structures import CaseInsensitiveDict

from clubsite.dependencies import get_pdf_proxy
from clubsite.errors import UpstreamError
from clubsite.pdf_proxy import PdfProxy
from clubsite.tests.test_app import ApiTestCase

DOC_URL = "https://www.w3.org/doc.pdf"


class FakeResponse:
    def __init__(self, status_code=200, headers=None, chunks=(), url=DOC_URL):
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers or {})
        self.chunks = list(chunks)
        self.url = url
        self.closed = False

    def iter_content(self, chunk_size):
        yield from self.chunks

    def close(self):
        self.closed = True


def pdf_response(body=b"%PDF-1.4 demo", **headers):
    return FakeResponse(headers={"Content-Type": "application/pdf", **headers}, chunks=[body])


class FakeSession:
    def __init__(self, responses=None, error=None):
        self.responses = dict(responses or {})
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses[url]


class PdfProxyTests(unittest.TestCase):
    def _proxy(self, responses=None, **kwargs):
        self.session = FakeSession(responses, kwargs.pop("error", None))
        return PdfProxy({"www.w3.org"}, session=self.session, **kwargs)

    def assertUpstream(self, status, message, func, *args):
        with self.assertRaises(UpstreamError) as ctx:
            func(*args)
        self.assertEqual((ctx.exception.status_code, ctx.exception.message), (status, message))

    def test_url_validation(self):
        proxy = self._proxy()
        self.assertUpstream(400, "url required", proxy.validate_url, None)
        self.assertUpstream(400, "invalid url", proxy.validate_url, "not a url")
        self.assertUpstream(400, "https only", proxy.validate_url, "http://www.w3.org/doc.pdf")
        self.assertUpstream(403, "host not allowed", proxy.validate_url, "https://evil.example/x.pdf")
        self.assertEqual(proxy.validate_url(DOC_URL), DOC_URL)
        self.assertEqual(self.session.calls, [])

    def test_requests_are_streamed_without_auto_redirects(self):
        proxy = self._proxy({DOC_URL: pdf_response()})
        proxy.open(DOC_URL)
        _, kwargs = self.session.calls[0]
        self.assertTrue(kwargs["stream"])
        self.assertFalse(kwargs["allow_redirects"])

    def test_non_pdf_is_rejected_and_closed(self):
        upstream = FakeResponse(headers={"Content-Type": "text/html"})
        proxy = self._proxy({DOC_URL: upstream})
        self.assertUpstream(415, "not a pdf", proxy.open, DOC_URL)
        self.assertTrue(upstream.closed)

    def test_upstream_failures(self):
        proxy = self._proxy({DOC_URL: FakeResponse(status_code=404)})
        self.assertUpstream(502, "upstream error", proxy.open, DOC_URL)

        proxy = self._proxy(error=requests.ConnectionError("boom"))
        self.assertUpstream(502, "fetch failed", proxy.open, DOC_URL)

    def test_follows_one_https_redirect(self):
        target = "https://www.w3.org/real.pdf"
        first = FakeResponse(status_code=302, headers={"Location": target})
        final = pdf_response()
        proxy = self._proxy({DOC_URL: first, target: final})
        self.assertIs(proxy.open(DOC_URL), final)
        self.assertTrue(first.closed)

    def test_redirect_limits(self):
        hop = "https://www.w3.org/hop.pdf"
        proxy = self._proxy(
            {
                DOC_URL: FakeResponse(status_code=301, headers={"Location": hop}),
                hop: FakeResponse(status_code=302, headers={"Location": DOC_URL}),
            }
        )
        self.assertUpstream(502, "too many redirects", proxy.open, DOC_URL)

        proxy = self._proxy(
            {DOC_URL: FakeResponse(status_code=302, headers={"Location": "http://www.w3.org/doc.pdf"})}
        )
        self.assertUpstream(502, "bad redirect", proxy.open, DOC_URL)

    def test_redirect_to_other_host_is_not_followed(self):
        proxy = self._proxy(
            {DOC_URL: FakeResponse(status_code=302, headers={"Location": "https://evil.example/x.pdf"})}
        )
        self.assertUpstream(502, "bad redirect", proxy.open, DOC_URL)
        self.assertEqual([url for url, _ in self.session.calls], [DOC_URL])

    def test_size_cap(self):
        proxy = self._proxy({DOC_URL: pdf_response(**{"Content-Length": "100"})}, max_bytes=10)
        self.assertUpstream(413, "file too large", proxy.open, DOC_URL)

        upstream = FakeResponse(chunks=[b"x" * 6, b"x" * 6])
        proxy = self._proxy(max_bytes=10)
        body = proxy.iter_body(upstream)
        self.assertEqual(next(body), b"x" * 6)
        self.assertUpstream(413, "file too large", next, body)
        self.assertTrue(upstream.closed)


class PdfProxyRouteTests(ApiTestCase):
    def _use(self, responses):
        self.session = FakeSession(responses)
        proxy = PdfProxy({"www.w3.org"}, session=self.session)
        self.app.dependency_overrides[get_pdf_proxy] = lambda: proxy

    def test_streams_pdf(self):
        upstream = pdf_response(b"%PDF-1.7 body")
        self._use({DOC_URL: upstream})
        response = self.client.get("/api/pdf-proxy", params={"url": DOC_URL})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, b"%PDF-1.7 body")
        self.assertEqual(response.headers["content-type"], "application/pdf")
        self.assertEqual(response.headers["cache-control"], "public, max-age=3600")
        self.assertTrue(upstream.closed)

    def test_disallowed_host_is_never_fetched(self):
        self._use({})
        response = self.client.get("/api/pdf-proxy", params={"url": "https://evil.example/x.pdf"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.text, "host not allowed")
        self.assertEqual(self.session.calls, [])


if __name__ == "__main__":
    unittest.main()
