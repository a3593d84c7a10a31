"""Async utilities for running blocking sync cycles from async callers."""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Sync cycles read and write files synchronously; the scheduler and the
    MCP tool handlers await them through this wrapper so only one cycle
    runs at a time from the loop's point of view.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        result = await run_sync(reconciler.run_cycle, Direction.BIDIRECTIONAL)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
