from __future__ import annotations
"""Single-slot handoff between the network reader and the output consumer.

`relay` runs the source iterator in its own task and hands items over
through an ``asyncio.Queue(maxsize=1)``. The reader therefore suspends as
soon as it is one item ahead of the consumer, which bounds memory to a
single fragment no matter how slow the terminal is. Items are consumed
strictly in the order they were produced.
"""

import asyncio
import contextlib
import inspect
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar, Union

T = TypeVar('T')

_END = object()


async def relay(source: AsyncIterator[T], consume: Callable[[T], Union[Any, Awaitable[Any]]]) -> int:
    """Feed every item of *source* to *consume*; return the number consumed.

    An exception raised by *source* is re-raised here after the items that
    preceded it have been consumed. If *consume* fails, or the caller is
    cancelled, the reader task is cancelled and the source closed.
    """
    slot: asyncio.Queue = asyncio.Queue(maxsize=1)

    async def _reader() -> None:
        try:
            async for item in source:
                await slot.put((item, None))
        except Exception as exc:
            await slot.put((_END, exc))
            return
        finally:
            aclose = getattr(source, 'aclose', None)
            if aclose is not None:
                await aclose()
        await slot.put((_END, None))

    task = asyncio.create_task(_reader())
    count = 0
    try:
        while True:
            item, error = await slot.get()
            if item is _END:
                if error is not None:
                    raise error
                return count
            result = consume(item)
            if inspect.isawaitable(result):
                await result
            count += 1
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
