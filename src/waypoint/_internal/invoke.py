"""Invoke helpers — call sync or async handlers uniformly.

Waypoint handlers can be ``def`` or ``async def``. Every handler is
normalised once, at registration, into an async responder so the
per-request path is a single ``await``.

Usage::

    from waypoint._internal.invoke import as_responder

    responder = as_responder(handler)
    response = await responder(request)
"""

import functools
import inspect
from typing import Any

import anyio.to_thread


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine.

    Works with both sync and async callables::

        # sync: returns immediately
        def index(request):
            return Response("home")

        # async: returns a coroutine
        async def index(request):
            data = await fetch_data()
            return Response(data)
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def as_responder(handler: Any, *, offload: bool = False) -> Any:
    """Wrap *handler* so it can always be awaited with a single request argument.

    Coroutine functions are returned unchanged. Plain callables are wrapped;
    with ``offload=True`` they run in a worker thread via ``anyio.to_thread``
    so blocking handlers do not stall the event loop.
    """
    if not callable(handler):
        msg = f"Responder must be callable, got {type(handler).__name__}"
        raise TypeError(msg)

    if inspect.iscoroutinefunction(handler) or _is_async_callable(handler):
        return handler

    if offload:

        @functools.wraps(handler)
        async def threaded(request: Any) -> Any:
            result = await anyio.to_thread.run_sync(handler, request)
            if inspect.isawaitable(result):
                result = await result
            return result

        return threaded

    @functools.wraps(handler)
    async def inline(request: Any) -> Any:
        return await invoke(handler, request)

    return inline


def _is_async_callable(obj: Any) -> bool:
    """True for objects whose ``__call__`` is a coroutine function (e.g. a Router)."""
    call = getattr(type(obj), "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)
