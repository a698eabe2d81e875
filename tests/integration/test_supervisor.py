import asyncio
import logging
import os
import signal

import aiohttp
import pytest

from titlecrawler.api.app import create_app
from titlecrawler.api.supervisor import HTTPListener, ShutdownSupervisor, SupervisorState
from titlecrawler.utils.config import Config


class FakeListener:
    """Listener double with controllable failures."""

    def __init__(self, start_error=None, serve_error=None, shutdown_delay=0.0):
        self.start_error = start_error
        self.serve_error = serve_error
        self.shutdown_delay = shutdown_delay
        self.started = False
        self.shutdown_called = False
        self._closed = None

    async def start(self):
        if self.start_error is not None:
            raise self.start_error
        self._closed = asyncio.Event()
        self.started = True

    async def serve(self):
        if self.serve_error is not None:
            raise self.serve_error
        await self._closed.wait()

    async def shutdown(self):
        self.shutdown_called = True
        await asyncio.sleep(self.shutdown_delay)
        self._closed.set()


async def wait_for_state(supervisor: ShutdownSupervisor, state: SupervisorState, timeout: float = 2.0):
    async def poll():
        while supervisor.state is not state:
            await asyncio.sleep(0.01)
    await asyncio.wait_for(poll(), timeout)


class TestShutdownSupervisor:
    """Tests for the supervisor state machine"""

    async def test_requested_shutdown(self):
        listener = FakeListener()
        supervisor = ShutdownSupervisor(listener, shutdown_timeout=1.0)
        assert supervisor.state is SupervisorState.STARTING

        task = asyncio.create_task(supervisor.run())
        await wait_for_state(supervisor, SupervisorState.SERVING)
        supervisor.request_shutdown("test")

        assert await task is True
        assert listener.shutdown_called
        assert supervisor.state is SupervisorState.STOPPED

    async def test_signal_triggers_shutdown(self):
        listener = FakeListener()
        supervisor = ShutdownSupervisor(listener, shutdown_timeout=1.0, signals=(signal.SIGUSR1,))

        task = asyncio.create_task(supervisor.run())
        await wait_for_state(supervisor, SupervisorState.SERVING)
        os.kill(os.getpid(), signal.SIGUSR1)

        assert await asyncio.wait_for(task, 2.0) is True
        assert listener.shutdown_called

    async def test_listener_failure_triggers_shutdown(self, caplog):
        listener = FakeListener(serve_error=RuntimeError("accept failed"))
        supervisor = ShutdownSupervisor(listener, shutdown_timeout=1.0)

        with caplog.at_level(logging.INFO):
            clean = await asyncio.wait_for(supervisor.run(), 2.0)

        assert clean is True
        assert listener.shutdown_called
        assert "Listener error: accept failed" in caplog.text
        assert supervisor.state is SupervisorState.STOPPED

    async def test_bind_failure_is_fatal(self):
        listener = FakeListener(start_error=OSError("address already in use"))
        supervisor = ShutdownSupervisor(listener, shutdown_timeout=1.0)

        with pytest.raises(OSError):
            await supervisor.run()

        assert not listener.shutdown_called
        assert supervisor.state is SupervisorState.STOPPED

    async def test_slow_shutdown_is_reported(self, caplog):
        listener = FakeListener(shutdown_delay=5.0)
        supervisor = ShutdownSupervisor(listener, shutdown_timeout=0.1)

        task = asyncio.create_task(supervisor.run())
        await wait_for_state(supervisor, SupervisorState.SERVING)
        with caplog.at_level(logging.ERROR):
            supervisor.request_shutdown("test")
            clean = await asyncio.wait_for(task, 2.0)

        assert clean is False
        assert "Shutdown did not complete" in caplog.text
        assert supervisor.state is SupervisorState.STOPPED


class TestHTTPListener:
    """Tests serving the real application"""

    async def test_serves_until_shutdown(self, fake_fetcher_factory):
        fetcher = fake_fetcher_factory()
        listener = HTTPListener(create_app(Config(), fetcher=fetcher), '127.0.0.1', 0, grace_period=1.0)
        supervisor = ShutdownSupervisor(listener, shutdown_timeout=2.0)

        task = asyncio.create_task(supervisor.run())
        await wait_for_state(supervisor, SupervisorState.SERVING)
        port = listener.addresses[0][1]

        async with aiohttp.ClientSession() as session:
            async with session.get(f'http://127.0.0.1:{port}/crawler', params={'url': 'http://a.test'}) as response:
                body = await response.json()

        assert body == [{"url": "http://a.test", "result": "http://a.test", "status": True, "error": ""}]

        supervisor.request_shutdown("test")
        assert await asyncio.wait_for(task, 3.0) is True
        assert fetcher.closed

        async with aiohttp.ClientSession() as session:
            with pytest.raises(aiohttp.ClientConnectionError):
                await session.get(f'http://127.0.0.1:{port}/health')

    async def test_port_in_use(self, fake_fetcher_factory):
        first = HTTPListener(create_app(Config(), fetcher=fake_fetcher_factory()), '127.0.0.1', 0)
        await first.start()
        try:
            port = first.addresses[0][1]
            second = HTTPListener(create_app(Config(), fetcher=fake_fetcher_factory()), '127.0.0.1', port)
            with pytest.raises(OSError):
                await second.start()
        finally:
            await first.shutdown()
