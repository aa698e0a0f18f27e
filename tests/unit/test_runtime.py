"""
Unit tests for the background event loop.
"""
import asyncio
import threading

import pytest
from pgbind.exceptions import RuntimeFailed
from pgbind.runtime import BackgroundLoop


@pytest.fixture
def runtime():
    loop = BackgroundLoop()
    try:
        yield loop
    finally:
        loop.stop()


async def current_thread_name():
    await asyncio.sleep(0)
    return threading.current_thread().name


def test_run_executes_on_background_thread(runtime):
    assert runtime.running
    assert runtime.run(current_thread_name()) == runtime.name
    assert runtime.name != threading.current_thread().name


def test_each_loop_has_its_own_thread():
    first, second = BackgroundLoop(), BackgroundLoop()
    try:
        assert first.name != second.name
        assert first.run(current_thread_name()) != second.run(current_thread_name())
    finally:
        first.stop()
        second.stop()


def test_submit_returns_future(runtime):
    async def add(a, b):
        return a + b

    future = runtime.submit(add(1, 2))
    assert future.result(timeout=5) == 3


def test_run_propagates_exceptions(runtime):
    async def fail():
        raise ValueError('boom')

    with pytest.raises(ValueError, match='boom'):
        runtime.run(fail())


def test_run_after_stop(runtime):
    runtime.stop()
    assert not runtime.running

    async def noop():
        return None

    with pytest.raises(RuntimeFailed, match='not running'):
        runtime.run(noop())


def test_stop_twice_is_noop(runtime):
    runtime.stop()
    runtime.stop()


def test_run_from_loop_thread_rejected(runtime):
    async def nested():
        async def inner():
            return 1
        with pytest.raises(RuntimeFailed, match='own thread'):
            runtime.run(inner())
        return True

    assert runtime.run(nested())


def test_stop_cancels_pending_work(runtime):
    started = threading.Event()

    async def forever():
        started.set()
        await asyncio.sleep(3600)

    future = runtime.submit(forever())
    assert started.wait(5)
    runtime.stop()
    assert future.cancelled()
