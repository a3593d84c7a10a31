"""Tests for async_utils module."""

import threading

import pytest

from timeline_sync.core.async_utils import run_sync


def _sync_add(a: int, b: int) -> int:
    return a + b


async def test_run_sync_calls_function():
    """run_sync delegates to asyncio.to_thread with correct args."""
    assert await run_sync(_sync_add, 3, 4) == 7


async def test_run_sync_passes_kwargs():
    def _kw_func(*, name: str) -> str:
        return f"hello {name}"

    assert await run_sync(_kw_func, name="world") == "hello world"


async def test_run_sync_uses_worker_thread():
    """The blocking call does not run on the event loop thread."""
    loop_thread = threading.get_ident()
    assert await run_sync(threading.get_ident) != loop_thread


async def test_run_sync_propagates_exceptions():
    def _boom() -> None:
        raise RuntimeError("store unavailable")

    with pytest.raises(RuntimeError, match="store unavailable"):
        await run_sync(_boom)
