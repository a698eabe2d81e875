"""
Exceptions raised while crawling a single URL.

Each of these stays local to one URL: the worker collapses it to a string
on the corresponding ParsingResult.
"""

from http import HTTPStatus


class CrawlError(Exception):
    """Base exception for per-URL crawl failures."""
    pass


class FetchError(CrawlError):
    """Retrieval of a URL failed."""
    pass


class TransportError(FetchError):
    """Connection-level failure (DNS, refused, reset, invalid URL)."""
    pass


class FetchTimeoutError(FetchError):
    """No complete response within the per-fetch timeout."""

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"request to {url} timed out after {timeout:g}s")


class HTTPStatusError(FetchError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        try:
            reason = HTTPStatus(status_code).phrase
        except ValueError:
            reason = "Unknown Status"
        super().__init__(f"request error with status {status_code} {reason}")


class BodyReadError(FetchError):
    """The response body could not be fully drained."""
    pass


class ExtractError(CrawlError):
    """Content could not be parsed by the extractor."""
    pass
