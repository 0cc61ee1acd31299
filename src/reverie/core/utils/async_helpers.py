"""Async utilities for driving the journal API from synchronous callers."""

import asyncio
from concurrent.futures import ThreadPoolExecutor


def run_async_safely(coro):
    """
    Run *coro* to completion from sync code and return its result.

    With no running event loop this is ``asyncio.run()``. Inside a running
    loop (a tool host, a notebook) the coroutine runs on a fresh loop in a
    worker thread, since loops cannot be nested.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, coro).result()
