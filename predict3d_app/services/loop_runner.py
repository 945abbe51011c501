from __future__ import annotations
import asyncio
import threading
from typing import Any, Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

_loop: Optional[asyncio.AbstractEventLoop] = None
_lock = threading.Lock()

def start_once() -> asyncio.AbstractEventLoop:
    """Event loop in a daemon thread; streamlit reruns reuse it."""
    global _loop
    with _lock:
        if _loop is not None and not _loop.is_closed():
            return _loop
        loop = asyncio.new_event_loop()
        ready = threading.Event()
        def _run():
            asyncio.set_event_loop(loop)
            loop.call_soon(ready.set)
            loop.run_forever()
        threading.Thread(target=_run, name="segmentation-loop", daemon=True).start()
        ready.wait()
        _loop = loop
        return loop

def run(coro: Awaitable[T], timeout: Optional[float] = None) -> T:
    loop = start_once()
    return asyncio.run_coroutine_threadsafe(coro, loop).result(timeout)

def call(fn: Callable[..., T], *args: Any, timeout: Optional[float] = None) -> T:
    # for sync methods that touch loop-owned objects (tasks, futures)
    async def _call() -> T:
        return fn(*args)
    return run(_call(), timeout=timeout)
