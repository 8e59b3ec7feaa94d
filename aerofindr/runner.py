"""
Background event loop for FlightFinder.

Flask serves requests on many threads, but FlightFinder expects every
state change to happen on one event loop. LoopRunner owns that loop on a
daemon thread; request threads hand it coroutines with submit().
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional

logger = logging.getLogger(__name__)


class LoopRunner:
    """Runs an asyncio event loop on a dedicated background thread."""

    def __init__(self, name: str = 'aerofindr-loop'):
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        """Start the loop thread; returns once the loop is accepting work."""
        if self.running:
            logger.warning('Event loop already running')
            return

        self._ready.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        self._ready.wait()
        logger.info('Background event loop started')

    def _run(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._loop.call_soon(self._ready.set)
        try:
            self._loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self._loop)
            for task in pending:
                task.cancel()
            if pending:
                self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self._loop.close()

    def submit(self, coro: Coroutine[Any, Any, Any]) -> concurrent.futures.Future:
        """
        Schedule a coroutine on the loop from any thread.

        Returns a concurrent Future the caller may wait on or ignore.
        """
        if not self.running or self._loop is None:
            coro.close()
            raise RuntimeError('Event loop is not running')
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def stop(self) -> None:
        """Stop the loop, cancelling work still in flight."""
        if not self.running or self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        logger.info('Background event loop stopped')
