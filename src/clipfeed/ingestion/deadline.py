"""Run an awaitable against a deadline."""

import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


async def with_deadline(
    operation: Awaitable[T],
    seconds: float,
    on_timeout: Callable[[], Exception],
) -> T:
    """Await operation, raising on_timeout() if it has not settled in time.

    On expiry the operation is cancelled and its own cleanup runs before the
    timeout error is raised. No timer outlives this call.
    """
    try:
        return await asyncio.wait_for(operation, timeout=seconds)
    except asyncio.TimeoutError:
        raise on_timeout() from None
