"""
Web page fetcher: one bounded GET per call, typed failures.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError

from .errors import FetchError, TransportError, FetchTimeoutError, HTTPStatusError, BodyReadError


@dataclass
class FetchResult:
    """Result of a successful fetch operation."""
    url: str
    content: bytes
    status_code: int = 200
    content_type: Optional[str] = None
    encoding: Optional[str] = None
    fetch_time: float = 0.0


class WebFetcher:
    """
    Fetches web pages over a shared aiohttp session.

    Every request uses its own connection, closed before ``fetch`` returns.
    There is no retry: a failure is raised as a ``FetchError`` subclass.
    """

    def __init__(self, user_agent: str, request_timeout: float = 2.0,
                 max_content_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_content_size = max_content_size

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=ClientTimeout(total=self.request_timeout),
                headers=headers,
                connector=aiohttp.TCPConnector(force_close=True)
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str, timeout: Optional[float] = None) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch
            timeout: Total budget in seconds for connect, response and body
                (defaults to ``request_timeout``)

        Returns:
            FetchResult with the full response body

        Raises:
            FetchTimeoutError: nothing complete arrived within ``timeout``
            HTTPStatusError: the response status was not 200
            TransportError: the connection could not be made or was lost
            BodyReadError: the body could not be fully drained
        """
        if not url:
            raise ValueError("url must not be empty")

        timeout = self.request_timeout if timeout is None else timeout
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        if self.session is None:
            raise RuntimeError("WebFetcher session is not started")

        start_time = time.monotonic()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url, timeout=ClientTimeout(total=timeout)) as response:
                if response.status != 200:
                    raise HTTPStatusError(response.status)

                content = await self._read_content_safely(response)

                result = FetchResult(
                    url=url,
                    content=content,
                    status_code=response.status,
                    content_type=response.headers.get('content-type', '').lower(),
                    encoding=response.charset,
                    fetch_time=time.monotonic() - start_time
                )

        except asyncio.TimeoutError as e:
            self.stats['failed_requests'] += 1
            self.logger.debug(f"Timeout fetching {url}")
            raise FetchTimeoutError(url, timeout) from e

        except FetchError as e:
            self.stats['failed_requests'] += 1
            self.logger.debug(f"Failed fetching {url}: {e}")
            raise

        except ClientError as e:
            self.stats['failed_requests'] += 1
            self.logger.debug(f"Client error fetching {url}: {e}")
            raise TransportError(f"client error: {e}") from e

        self.stats['successful_requests'] += 1
        self.stats['total_bytes_downloaded'] += len(result.content)
        self.logger.debug(f"Fetched {url}: {result.status_code} ({len(result.content)} bytes)")
        return result

    async def _read_content_safely(self, response: aiohttp.ClientResponse) -> bytes:
        """
        Read the whole response body, bounded by ``max_content_size``.

        Raises:
            BodyReadError: body too large, truncated, or the connection dropped mid-read
        """
        content_length = response.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > self.max_content_size:
            raise BodyReadError(f"content too large ({content_length} bytes)")

        chunks = []
        size = 0
        try:
            async for chunk in response.content.iter_chunked(8192):
                size += len(chunk)
                if size > self.max_content_size:
                    raise BodyReadError(f"content exceeded size limit of {self.max_content_size} bytes")
                chunks.append(chunk)
        except asyncio.TimeoutError:
            raise
        except ClientError as e:
            raise BodyReadError(f"error reading body: {e}") from e

        return b''.join(chunks)

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
