"""
Monitoring and metrics collection for the title crawler service.
"""

import logging
from typing import Optional

from prometheus_client import Counter, Histogram, CollectorRegistry, start_http_server


class CrawlerMonitor:
    """Collects crawler metrics on a private Prometheus registry."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger(__name__)
        self.registry = registry or CollectorRegistry()

        self.requests_total = Counter(
            'crawler_requests_total',
            'Total number of crawl requests handled',
            registry=self.registry
        )
        self.urls_crawled_total = Counter(
            'crawler_urls_crawled_total',
            'Total number of URLs crawled, by outcome',
            ['outcome'],
            registry=self.registry
        )
        self.errors_total = Counter(
            'crawler_errors_total',
            'Total number of per-URL crawl errors',
            ['error_type'],
            registry=self.registry
        )
        self.dropped_total = Counter(
            'crawler_results_dropped_total',
            'Results that arrived after the collection window closed',
            registry=self.registry
        )
        self.crawl_time_seconds = Histogram(
            'crawler_crawl_time_seconds',
            'Fetch and extract time per URL',
            registry=self.registry
        )

    def record_request(self):
        """Record an inbound crawl request."""
        self.requests_total.inc()

    def record_url_crawled(self, success: bool, crawl_time: float):
        """Record a finished URL task."""
        outcome = 'success' if success else 'failure'
        self.urls_crawled_total.labels(outcome=outcome).inc()
        self.crawl_time_seconds.observe(crawl_time)

    def record_error(self, error_type: str):
        """Record an error event."""
        self.errors_total.labels(error_type=error_type).inc()

    def record_dropped(self, count: int):
        """Record results discarded because the window closed first."""
        if count > 0:
            self.dropped_total.inc(count)

    def start_prometheus_server(self, port: int):
        """Start Prometheus metrics HTTP server."""
        start_http_server(port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {port}")
