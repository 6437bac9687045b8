"""
Restricted PDF proxy.

Fetches an https PDF from an allow-listed host and streams it back, so the
site can embed documents that refuse cross-origin framing.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional
from urllib.parse import urljoin, urlsplit

import requests

from clubsite.errors import UpstreamError

logger = logging.getLogger(__name__)

MAX_PDF_BYTES = 25 * 1024 * 1024
CHUNK_SIZE = 64 * 1024
REQUEST_TIMEOUT = 30  # seconds


def _is_redirect(response: requests.Response) -> bool:
    return 300 <= response.status_code < 400 and "location" in response.headers


class PdfProxy:
    """Validates proxy targets and opens upstream PDF streams."""

    def __init__(
        self,
        allowed_hosts: Iterable[str],
        *,
        session: Optional[requests.Session] = None,
        max_bytes: int = MAX_PDF_BYTES,
    ):
        self.allowed_hosts = {host.strip().lower() for host in allowed_hosts if host.strip()}
        self.session = session or requests.Session()
        self.max_bytes = max_bytes

    def validate_url(self, raw_url: Optional[str]) -> str:
        if not raw_url:
            raise UpstreamError("url required", 400)
        try:
            parsed = urlsplit(raw_url)
        except ValueError:
            raise UpstreamError("invalid url", 400)
        if not parsed.scheme or not parsed.netloc:
            raise UpstreamError("invalid url", 400)
        if parsed.scheme.lower() != "https":
            raise UpstreamError("https only", 400)
        if (parsed.hostname or "").lower() not in self.allowed_hosts:
            raise UpstreamError("host not allowed", 403)
        return raw_url

    def _get(self, url: str) -> requests.Response:
        try:
            return self.session.get(
                url, stream=True, allow_redirects=False, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as exc:
            logger.warning("PDF fetch failed for %s: %s", url, exc)
            raise UpstreamError("fetch failed", 502) from exc

    def open(self, url: str) -> requests.Response:
        """
        Fetch ``url``, following at most one redirect to another https URL on
        an allowed host, and check the response is a PDF within the size cap.
        The caller owns the returned response.
        """
        response = self._get(url)
        if _is_redirect(response):
            location = urljoin(url, response.headers["location"])
            response.close()
            try:
                self.validate_url(location)
            except UpstreamError as exc:
                raise UpstreamError("bad redirect", 502) from exc
            response = self._get(location)
            if _is_redirect(response):
                response.close()
                raise UpstreamError("too many redirects", 502)

        if response.status_code >= 400:
            response.close()
            raise UpstreamError("upstream error", 502)

        content_type = (response.headers.get("content-type") or "").lower()
        if "application/pdf" not in content_type:
            response.close()
            raise UpstreamError("not a pdf", 415)

        try:
            declared = int(response.headers.get("content-length") or 0)
        except ValueError:
            declared = 0
        if declared > self.max_bytes:
            response.close()
            raise UpstreamError("file too large", 413)
        return response

    def iter_body(self, response: requests.Response) -> Iterator[bytes]:
        """Yield the upstream body, aborting once it exceeds the size cap."""
        total = 0
        try:
            for chunk in response.iter_content(CHUNK_SIZE):
                total += len(chunk)
                if total > self.max_bytes:
                    logger.warning("PDF from %s exceeded %d bytes", response.url, self.max_bytes)
                    raise UpstreamError("file too large", 413)
                yield chunk
        except requests.RequestException as exc:
            logger.warning("PDF stream from %s failed: %s", response.url, exc)
            raise UpstreamError("stream error", 502) from exc
        finally:
            response.close()
