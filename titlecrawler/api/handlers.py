"""
HTTP request handlers.
"""

import json
import logging
from typing import List, Optional

from aiohttp import web

from ..crawler.aggregator import aggregate, filter_urls
from ..crawler.extractor import Extractor
from ..crawler.worker import ParsingResult
from ..utils.config import CrawlerConfig
from ..utils.monitoring import CrawlerMonitor


MISSING_URL_MESSAGE = "Query param 'url' is missing"


async def write_body(request: web.Request, body: str, content_type: str) -> web.StreamResponse:
    """
    Write ``body`` with status 200. A client that went away is logged, not retried.
    """
    response = web.StreamResponse()
    response.content_type = content_type
    try:
        await response.prepare(request)
        await response.write(body.encode('utf-8'))
        await response.write_eof()
    except ConnectionResetError as e:
        logging.getLogger(__name__).error(f"Error writing response: {e}")
    return response


class CrawlHandler:
    """
    Handles ``GET /crawler?url=...``: one aggregation per request.
    """

    def __init__(self, config: CrawlerConfig, fetcher, extractor: Extractor,
                 monitor: Optional[CrawlerMonitor] = None):
        self.config = config
        self.fetcher = fetcher
        self.extractor = extractor
        self.monitor = monitor
        self.logger = logging.getLogger(__name__)

    async def handle(self, request: web.Request) -> web.StreamResponse:
        if self.monitor is not None:
            self.monitor.record_request()

        urls = filter_urls(request.query.getall('url', []))
        if not urls:
            return await write_body(request, MISSING_URL_MESSAGE, 'text/plain')

        self.logger.debug(f"Crawling {len(urls)} URLs")
        results = await aggregate(
            urls,
            self.extractor,
            self.fetcher,
            per_fetch_timeout=self.config.request_timeout,
            window_timeout=self.config.window_timeout,
            monitor=self.monitor
        )

        return await write_body(request, self.serialize(results), 'application/json')

    def serialize(self, results: List[ParsingResult]) -> str:
        """Serialize results; on failure log and return an empty body."""
        try:
            return json.dumps([result.to_dict() for result in results], ensure_ascii=False)
        except (TypeError, ValueError) as e:
            self.logger.error(f"Error serializing results: {e}")
            return ""


async def health_check(request: web.Request) -> web.Response:
    """Health check endpoint"""
    return web.json_response({"status": "healthy", "service": "Title Crawler"})
