import asyncio


class InterruptError(Exception):
    pass


async def interruptable_get(queue, event):
    """Get an item from queue unless event is set first.

    Items already in the queue are returned even when event is set, so a
    consumer drains everything that was put before the interrupt.

    :raises InterruptError: event was set and the queue is empty.
    """
    # fast path
    if not queue.empty():
        return queue.get_nowait()
    if event.is_set():
        raise InterruptError

    get_fut = asyncio.ensure_future(queue.get())
    interrupt_fut = asyncio.ensure_future(event.wait())
    try:
        await asyncio.wait((get_fut, interrupt_fut),
                           return_when=asyncio.FIRST_COMPLETED)
    finally:
        for fut in (get_fut, interrupt_fut):
            if not fut.done():
                fut.cancel()

    if get_fut.done() and not get_fut.cancelled():
        return get_fut.result()
    raise InterruptError
