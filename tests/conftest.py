import asyncio
import logging

import pytest
from aiohttp import web
from aiohttp import test_utils

from titlecrawler.crawler.fetcher import FetchResult


def html_page(title: str) -> str:
    return f"""<!DOCTYPE html>
<html>
    <head>
        <title>{title}</title>
    </head>
    <body>
        <h1>Heading</h1>
        <p>Paragraph.</p>
    </body>
</html>"""


class FakeFetcher:
    """In-memory fetcher with per-URL delays, failures and hangs."""

    def __init__(self, pages=None, delays=None, errors=None, hang=()):
        self.pages = pages or {}
        self.delays = delays or {}
        self.errors = errors or {}
        self.hang = set(hang)
        self.calls = []
        self.completed = []
        self.cancelled = []
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True

    def get_stats(self):
        return {'total_requests': len(self.calls)}

    async def fetch(self, url, timeout):
        self.calls.append(url)
        try:
            if url in self.hang:
                await asyncio.Event().wait()
            delay = self.delays.get(url, 0)
            if delay:
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(url)
            raise

        self.completed.append(url)
        if url in self.errors:
            raise self.errors[url]
        return FetchResult(url=url, content=self.pages.get(url, html_page(url)).encode('utf-8'))


@pytest.fixture
def fake_fetcher_factory():
    return FakeFetcher


@pytest.fixture
async def upstream():
    """Local HTTP server standing in for the crawled sites."""
    release = asyncio.Event()

    async def page_x(request):
        return web.Response(text=html_page("X"), content_type='text/html')

    async def page_y(request):
        return web.Response(text=html_page("Y"), content_type='text/html')

    async def no_title(request):
        return web.Response(text="<html><body><p>nothing here</p></body></html>", content_type='text/html')

    async def missing(request):
        return web.Response(status=404, text="not found")

    async def slow(request):
        try:
            await asyncio.wait_for(release.wait(), 5)
        except asyncio.TimeoutError:
            pass
        return web.Response(text=html_page("Slow"), content_type='text/html')

    async def big(request):
        return web.Response(body=b"a" * 4096, content_type='text/html')

    async def user_agent(request):
        return web.Response(text=html_page(request.headers.get('User-Agent', '')), content_type='text/html')

    app = web.Application()
    app.router.add_get('/x', page_x)
    app.router.add_get('/y', page_y)
    app.router.add_get('/no-title', no_title)
    app.router.add_get('/missing', missing)
    app.router.add_get('/slow', slow)
    app.router.add_get('/big', big)
    app.router.add_get('/ua', user_agent)

    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        release.set()
        await server.close()


@pytest.fixture
def restore_logging():
    """Keep root logger handlers intact across tests that reconfigure logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def page():
    return html_page
