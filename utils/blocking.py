import asyncio
from typing import Any, Callable


async def run_blocking(fn: Callable[..., Any], *args: Any, timeout: float) -> Any:
    """
    Run a blocking client call in a worker thread, bounded by ``timeout`` seconds.

    Raises:
        asyncio.TimeoutError: if the call does not finish in time. The worker
        thread is not interrupted; its result is discarded.
    """
    return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=timeout)
