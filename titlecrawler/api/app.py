"""
Application factory: builds the aiohttp application and its routes.
"""

import logging
from typing import Optional

from aiohttp import web

from .handlers import CrawlHandler, health_check
from ..crawler.extractor import Extractor, TitleExtractor
from ..crawler.fetcher import WebFetcher
from ..utils.config import Config
from ..utils.monitoring import CrawlerMonitor


def create_app(config: Config, extractor: Optional[Extractor] = None,
               fetcher: Optional[WebFetcher] = None,
               monitor: Optional[CrawlerMonitor] = None) -> web.Application:
    """
    Build the web application.

    Args:
        config: Service configuration
        extractor: Value extractor (defaults to ``TitleExtractor``)
        fetcher: Fetcher to use; one is built from ``config.crawler`` if omitted.
            Its session is opened on startup and closed on cleanup.
        monitor: Optional metrics collector
    """
    logger = logging.getLogger(__name__)

    if fetcher is None:
        fetcher = WebFetcher(
            user_agent=config.crawler.user_agent,
            request_timeout=config.crawler.request_timeout,
            max_content_size=config.crawler.max_content_size
        )

    async def fetcher_context(app: web.Application):
        await fetcher.start()
        yield
        logger.info(f"Fetcher stats: {fetcher.get_stats()}")
        await fetcher.close()

    handler = CrawlHandler(config.crawler, fetcher, extractor or TitleExtractor(), monitor)

    app = web.Application()
    app.cleanup_ctx.append(fetcher_context)
    app.router.add_get('/crawler', handler.handle)
    app.router.add_get('/health', health_check)

    return app
