"""
Fan-out/fan-in of crawl tasks with a bounded collection window.

One task is dispatched per URL; results are gathered in completion order
until every task has reported or the window deadline passes. Results that
arrive after the deadline are discarded.
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from .extractor import Extractor
from .worker import ParsingResult, crawl_url
from ..utils.monitoring import CrawlerMonitor


logger = logging.getLogger(__name__)


def filter_urls(urls: Iterable[str]) -> List[str]:
    """
    Drop empty strings and exact duplicates, keeping first-seen order.
    """
    return list(dict.fromkeys(url for url in urls if url))


class CollectionWindow:
    """
    Accumulates results from a completion queue until ``target`` results
    have arrived or the deadline passes.
    """

    def __init__(self, target: int, timeout: float):
        self.target = target
        self.timeout = timeout
        self.deadline = asyncio.get_running_loop().time() + timeout
        self.results: List[ParsingResult] = []

    @property
    def complete(self) -> bool:
        return len(self.results) >= self.target

    async def collect(self, queue: asyncio.Queue) -> List[ParsingResult]:
        """Run the collection loop. Returns no later than the deadline."""
        loop = asyncio.get_running_loop()

        while not self.complete:
            # The deadline wins even when results are already queued.
            remaining = self.deadline - loop.time()
            if remaining <= 0:
                break

            try:
                result = await asyncio.wait_for(queue.get(), remaining)
            except asyncio.TimeoutError:
                break

            self.results.append(result)

        return self.results


async def aggregate(urls: List[str], extractor: Extractor, fetcher,
                    per_fetch_timeout: float, window_timeout: float,
                    monitor: Optional[CrawlerMonitor] = None) -> List[ParsingResult]:
    """
    Crawl ``urls`` concurrently and collect results for ``window_timeout``.

    Args:
        urls: Filtered, non-empty list of distinct URLs (see ``filter_urls``)
        extractor: Extractor applied to every fetched body
        fetcher: Object exposing ``async fetch(url, timeout)``
        per_fetch_timeout: Budget for each individual fetch
        window_timeout: How long results are accepted

    Returns:
        Results in completion order. URLs whose task did not finish inside
        the window are absent.
    """
    if not urls:
        raise ValueError("urls must not be empty")
    if per_fetch_timeout <= 0 or window_timeout <= 0:
        raise ValueError("timeouts must be positive")

    # One slot per task, so reporting never blocks even after the window closes.
    queue: asyncio.Queue = asyncio.Queue(maxsize=len(urls))

    async def run(url: str):
        result = await crawl_url(url, fetcher, extractor, per_fetch_timeout, monitor)
        queue.put_nowait(result)

    tasks = [asyncio.create_task(run(url)) for url in urls]
    window = CollectionWindow(len(tasks), window_timeout)

    try:
        results = await window.collect(queue)
        # Late tasks still hold connections; wait for them before returning.
        await asyncio.gather(*tasks)
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    dropped = len(tasks) - len(results)
    if dropped:
        logger.info(f"Collection window closed after {window_timeout:g}s, "
                    f"dropped {dropped} of {len(tasks)} results")
        if monitor is not None:
            monitor.record_dropped(dropped)

    return list(results)
