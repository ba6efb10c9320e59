"""FIFO channel bridging foreign-thread producers to an asyncio consumer."""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

from locwatch.logging import LOCWATCH_LOGGER

T = TypeVar("T")

# Marks the end of the stream once every accepted item has been taken
_CLOSED = object()


class ChannelClosed(Exception):
    """Raised by ``take`` once the channel is closed and drained."""


class Channel(Generic[T]):
    """
    Unbounded FIFO queue owned by one asyncio loop.

    ``put`` may be called from any thread. Calls from the loop's own thread
    enqueue immediately; calls from other threads are marshalled onto the loop
    with ``call_soon_threadsafe`` so ordering per producer thread is kept.

    ``close`` stops accepting items. Items accepted before the close are still
    delivered; items put afterwards are dropped.
    """

    def __init__(self, name: str, loop: asyncio.AbstractEventLoop | None = None):
        self.name = name
        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: T) -> None:
        if self._on_loop_thread():
            self._put(item)
            return
        try:
            self._loop.call_soon_threadsafe(self._put, item)
        except RuntimeError:
            # Loop already closed
            LOCWATCH_LOGGER.debug(f"Channel {self.name}: loop closed, dropping item")

    def _put(self, item: T) -> None:
        if self._closed:
            LOCWATCH_LOGGER.debug(f"Channel {self.name} is closed, dropping late item")
            return
        self._queue.put_nowait(item)

    def close(self) -> None:
        """Close the channel. Must be called on the loop thread."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def take(self) -> T:
        """Wait for the next item; raise ``ChannelClosed`` once closed and empty."""
        if self._drained:
            raise ChannelClosed(self.name)
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            raise ChannelClosed(self.name)
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> T:
        try:
            return await self.take()
        except ChannelClosed:
            raise StopAsyncIteration from None

    def qsize(self) -> int:
        """Number of items waiting to be taken."""
        size = self._queue.qsize()
        return size - 1 if self._closed and not self._drained else size

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Channel({self.name!r}, {state}, pending={self.qsize()})"
