"""Async utilities for issuing blocking document writes concurrently."""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Sequence, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a worker thread.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        result = await run_sync(engine.apply_to_client, registry, client, names)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def gather_settled(
    coros: Sequence[Coroutine[Any, Any, T]],
) -> list[T | BaseException]:
    """Run coroutines concurrently and wait for every one of them to settle.

    Unlike a plain ``asyncio.gather``, a failure in one coroutine neither
    cancels the others nor hides their results: exceptions are returned
    in place of the corresponding result.

    Args:
        coros: Sequence of coroutines to run concurrently.

    Returns:
        List of results or exceptions, in the same order as input coroutines.
    """
    results = await asyncio.gather(*coros, return_exceptions=True)
    for outcome in results:
        if isinstance(outcome, BaseException):
            logger.debug("Concurrent task failed: %r", outcome)
    return list(results)
