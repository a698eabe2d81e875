"""
Crawler core components.
"""

from .errors import (
    CrawlError, FetchError, TransportError, FetchTimeoutError,
    HTTPStatusError, BodyReadError, ExtractError
)
from .fetcher import WebFetcher, FetchResult
from .extractor import Extractor, FunctionExtractor, TitleExtractor
from .worker import ParsingResult, crawl_url
from .aggregator import CollectionWindow, aggregate, filter_urls

__all__ = [
    'CrawlError', 'FetchError', 'TransportError', 'FetchTimeoutError',
    'HTTPStatusError', 'BodyReadError', 'ExtractError',
    'WebFetcher', 'FetchResult',
    'Extractor', 'FunctionExtractor', 'TitleExtractor',
    'ParsingResult', 'crawl_url',
    'CollectionWindow', 'aggregate', 'filter_urls'
]
