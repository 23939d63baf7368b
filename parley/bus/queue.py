"""Work queue: FIFO of work items, each paired with a completion future."""

import asyncio
import concurrent.futures
from dataclasses import dataclass
from typing import Any

from loguru import logger

from parley.bus.events import WorkItem


@dataclass
class QueueEntry:
    item: WorkItem
    future: asyncio.Future

    def resolve(self, value: Any) -> None:
        if not self.future.done():
            self.future.set_result(value)

    def reject(self, error: BaseException) -> None:
        if not self.future.done():
            self.future.set_exception(error)
            # producers may never await the future
            self.future.exception()


class WorkQueue:
    """
    Queue between producers and the conversation loop.

    Producers call ``enqueue`` (or ``enqueue_threadsafe`` from another
    thread) and get a future back; the single consumer pops entries in
    arrival order and settles each future exactly once.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._queue: asyncio.Queue[QueueEntry] = asyncio.Queue()
        self._loop = loop

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach the queue to the event loop its consumer runs on."""
        if self._loop is not None and self._loop is not loop:
            raise RuntimeError("WorkQueue is already bound to another event loop")
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def enqueue(self, item: WorkItem) -> asyncio.Future:
        """Add an item to the queue. Must be called from the event loop thread."""
        future = self._get_loop().create_future()
        self._queue.put_nowait(QueueEntry(item, future))
        logger.debug(f"Enqueued {type(item).__name__} (pending={self._queue.qsize()})")
        return future

    def enqueue_threadsafe(self, item: WorkItem) -> concurrent.futures.Future:
        """Add an item from any thread; the returned future settles with the item."""
        if self._loop is None:
            raise RuntimeError("enqueue_threadsafe needs the queue to be bound to a loop")

        async def _submit() -> Any:
            return await self.enqueue(item)

        return asyncio.run_coroutine_threadsafe(_submit(), self._loop)

    async def get(self) -> QueueEntry:
        """Wait for the oldest pending entry."""
        self._get_loop()
        return await self._queue.get()

    @property
    def size(self) -> int:
        """Number of pending items."""
        return self._queue.qsize()
