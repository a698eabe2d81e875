"""
Per-URL crawl pipeline: fetch, then extract.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional

from .errors import CrawlError, FetchTimeoutError
from .extractor import Extractor
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


logger = get_crawler_logger(__name__, component="worker")


@dataclass
class ParsingResult:
    """Outcome of crawling one URL."""
    url: str
    result: str = ""
    success: bool = False
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation."""
        return {
            'url': self.url,
            'result': self.result,
            'status': self.success,
            'error': self.error
        }


async def crawl_url(url: str, fetcher, extractor: Extractor, timeout: float,
                    monitor: Optional[CrawlerMonitor] = None) -> ParsingResult:
    """
    Fetch ``url`` and run ``extractor`` over the body.

    Never raises for per-URL failures: they are reported on the returned
    ParsingResult. The fetch is bounded by ``timeout`` whatever fetcher is
    supplied; extraction runs in the default executor.
    """
    start_time = time.monotonic()
    error: Optional[Exception] = None
    value = ""

    try:
        try:
            fetch_result = await asyncio.wait_for(fetcher.fetch(url, timeout), timeout)
        except asyncio.TimeoutError:
            raise FetchTimeoutError(url, timeout) from None

        loop = asyncio.get_running_loop()
        value = await loop.run_in_executor(None, extractor.extract, fetch_result.content)
    except CrawlError as e:
        error = e
    except Exception as e:
        logger.log_url_event(logging.ERROR, url, f"Unexpected error crawling {url}: {e}", exc_info=True)
        error = e

    crawl_time = time.monotonic() - start_time

    if error is not None:
        logger.log_url_event(logging.DEBUG, url, "parsing error", extra={'error': str(error)})
        result = ParsingResult(url=url, result="", success=False, error=str(error) or type(error).__name__)
    else:
        result = ParsingResult(url=url, result=value, success=True, error="")

    if monitor is not None:
        monitor.record_url_crawled(result.success, crawl_time)
        if error is not None:
            monitor.record_error(type(error).__name__)

    return result
