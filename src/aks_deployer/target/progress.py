"""One-way progress stream from a deploy to its observer.

Publishing never waits: when the buffer is full the label is dropped, so a
slow observer cannot stall a deploy.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from ..shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_QUEUE_SIZE = 100

_CLOSED = object()


class ProgressChannel:
    """Bounded, non-blocking progress queue."""

    def __init__(self, max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, label: str) -> None:
        """Emit a progress label without blocking."""
        if self._closed:
            return
        try:
            self._queue.put_nowait(label)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.debug("progress dropped", label=label, dropped=self.dropped)

    def close(self) -> None:
        """End the stream; consumers stop after the buffered labels."""
        if self._closed:
            return
        self._closed = True
        if self._queue.full():
            # Make room for the end marker by dropping the oldest label
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
