"""
Background execution context owned by one Connection.

A BackgroundLoop is a daemon thread running a private asyncio event loop.
All driver I/O for a connection happens on that loop, so caller threads only
ever wait on futures and never touch the socket. Each Connection creates
exactly one BackgroundLoop at connect time and stops it when closed; loops
are never shared.
"""
import asyncio
import concurrent.futures
import logging
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

from pgbind.exceptions import RuntimeFailed

logger = logging.getLogger(__name__)

T = TypeVar('T')

_counter = 0
_counter_lock = threading.Lock()


def _next_name() -> str:
    global _counter
    with _counter_lock:
        _counter += 1
        return f'pgbind-loop-{_counter}'


class BackgroundLoop:
    """Event loop running on its own daemon thread.
    """

    def __init__(self, name: str | None = None, start_timeout: float = 10) -> None:
        self.name = name or _next_name()
        self.loop: asyncio.AbstractEventLoop | None = None
        self._ready = threading.Event()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        try:
            self._thread.start()
        except RuntimeError as exc:
            raise RuntimeFailed(f'Failed to start background thread: {exc}') from exc
        if not self._ready.wait(start_timeout) or self.loop is None:
            raise RuntimeFailed(f'Background event loop {self.name} did not start')
        logger.debug(f'Started background loop {self.name}')

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self.loop = loop
        loop.call_soon(self._ready.set)
        try:
            loop.run_forever()
        finally:
            try:
                pending = asyncio.all_tasks(loop)
                for task in pending:
                    task.cancel()
                if pending:
                    loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
                loop.run_until_complete(loop.shutdown_asyncgens())
            finally:
                loop.close()
                logger.debug(f'Closed background loop {self.name}')

    @property
    def running(self) -> bool:
        return self.loop is not None and self.loop.is_running() and not self.loop.is_closed()

    def in_loop_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def submit(self, coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future[T]:
        """Schedule a coroutine on the loop and return its future immediately.
        """
        if not self.running:
            coro.close()
            raise RuntimeFailed(f'Background event loop {self.name} is not running')
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine on the loop, blocking the calling thread until done.
        """
        if self.in_loop_thread():
            coro.close()
            raise RuntimeFailed('Cannot block on the background loop from its own thread')
        return self.submit(coro).result()

    def stop(self, timeout: float | None = 10) -> None:
        """Stop the loop, cancelling pending work, and join the thread.
        """
        if self.loop is None or self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        if not self.in_loop_thread():
            self._thread.join(timeout)
