"""
Process-level supervision of the HTTP listener: start, wait for a signal or
a listener failure, then shut down within a bounded time.
"""

import asyncio
import logging
import signal
from enum import Enum
from typing import List, Optional, Sequence

from aiohttp import web


class SupervisorState(Enum):
    """Lifecycle of the supervised process."""
    STARTING = "starting"
    SERVING = "serving"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class HTTPListener:
    """
    Serves an aiohttp application on a TCP address.

    ``shutdown`` stops accepting connections at once and gives in-flight
    handlers ``grace_period`` seconds before they are cancelled.
    """

    def __init__(self, app: web.Application, host: str, port: int, grace_period: float = 10.0):
        self.host = host
        self.port = port
        self.runner = web.AppRunner(app, shutdown_timeout=grace_period)
        self.logger = logging.getLogger(__name__)
        self._closed: Optional[asyncio.Event] = None

    async def start(self):
        """Bind and start accepting connections. Raises OSError if the bind fails."""
        self._closed = asyncio.Event()
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await self.runner.cleanup()
            raise
        self.logger.info(f"Listening on {', '.join(str(address) for address in self.addresses)}")

    async def serve(self):
        """Wait until the listener is closed."""
        await self._closed.wait()

    async def shutdown(self):
        """Stop accepting, drain in-flight requests, run application cleanup."""
        try:
            await self.runner.cleanup()
        finally:
            if self._closed is not None:
                self._closed.set()

    @property
    def addresses(self) -> List:
        return self.runner.addresses


class ShutdownSupervisor:
    """
    Drives ``STARTING -> SERVING -> SHUTTING_DOWN -> STOPPED``.

    A termination signal and a failing listener both converge on the same
    shutdown event. Shutdown is best-effort: if the listener does not stop
    within ``shutdown_timeout`` the failure is logged and ``run`` returns.
    """

    def __init__(self, listener, shutdown_timeout: float = 10.0,
                 signals: Sequence[signal.Signals] = (signal.SIGINT, signal.SIGTERM)):
        self.listener = listener
        self.shutdown_timeout = shutdown_timeout
        self.signals = tuple(signals)
        self.state = SupervisorState.STARTING
        self.logger = logging.getLogger(__name__)
        self._shutdown_event = asyncio.Event()

    def request_shutdown(self, reason: str = "requested"):
        """Trigger the shutdown sequence. Safe to call more than once."""
        if not self._shutdown_event.is_set():
            self.logger.info(f"Shutdown triggered: {reason}")
            self._shutdown_event.set()

    def setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()
        for sig in self.signals:
            loop.add_signal_handler(sig, self.request_shutdown, f"received signal {sig.name}")

    def remove_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in self.signals:
            loop.remove_signal_handler(sig)

    async def run(self) -> bool:
        """
        Run until shutdown.

        Returns:
            True if the listener shut down cleanly within the timeout

        Raises:
            OSError: the listener could not bind; nothing was served
        """
        self.setup_signal_handlers()
        try:
            await self.listener.start()
            self.state = SupervisorState.SERVING
            self.logger.info("Crawler serving")

            serve_task = asyncio.create_task(self.listener.serve())
            shutdown_task = asyncio.create_task(self._shutdown_event.wait())

            done, pending = await asyncio.wait(
                [serve_task, shutdown_task],
                return_when=asyncio.FIRST_COMPLETED
            )

            if serve_task in done:
                error = serve_task.exception()
                if error is not None:
                    self.logger.error(f"Listener error: {error}")
                    self.request_shutdown("listener failure")
                else:
                    self.request_shutdown("listener closed")

            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            self.state = SupervisorState.SHUTTING_DOWN
            return await self._shutdown()
        finally:
            self.remove_signal_handlers()
            self.state = SupervisorState.STOPPED

    async def _shutdown(self) -> bool:
        self.logger.info("Stopping listener...")
        try:
            await asyncio.wait_for(self.listener.shutdown(), self.shutdown_timeout)
        except asyncio.TimeoutError:
            self.logger.error(f"Shutdown did not complete within {self.shutdown_timeout:g}s")
            return False
        except Exception as e:
            self.logger.error(f"Error during shutdown: {e}", exc_info=True)
            return False

        self.logger.info("Listener stopped")
        return True
