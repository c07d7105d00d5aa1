"""
Bounded, closable input streams.

Each named stream owns a fixed-capacity buffer. A producer awaiting
`put()` blocks while the buffer is full; this is the only backpressure
in the system. Closing a stream discards whatever is still buffered,
releases blocked producers, and makes every later `get()` return None.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Callable, Deque, Optional

from constants import STREAM_BUFFER_SIZE
from observability.logger import log_event, now_ms
from streams.entry import LogEntry, utc_now


Transform = Callable[[Any], Any]


class StreamClosed(Exception):
    """Raised by put_nowait() on a closed stream."""


class StreamFull(Exception):
    """Raised by put_nowait() when the buffer is at capacity."""


class LogStream:
    """
    Bounded FIFO of LogEntry objects for one stream key.

    Every value is decorated into
    `LogEntry(type=key, data=transform(value), fact_time=now)` at the
    moment it is offered, before any waiting for buffer space.

    Single event loop only. Waiters re-check their condition after
    every state change, so cancelling a waiting get() or put() never
    loses or duplicates an entry.
    """

    def __init__(
        self,
        key: str,
        *,
        transform: Optional[Transform] = None,
        maxsize: int = STREAM_BUFFER_SIZE,
    ) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be > 0")

        self.key = key
        self._transform = transform
        self._maxsize = maxsize
        self._buffer: Deque[LogEntry] = deque()
        self._changed = asyncio.Event()
        self._closed = False

    # -------------------------
    # Producer side
    # -------------------------

    def decorate(self, value: Any) -> LogEntry:
        data = self._transform(value) if self._transform is not None else value
        return LogEntry(type=self.key, data=data, fact_time=utc_now())

    async def put(self, value: Any) -> bool:
        """
        Offer a value, waiting for buffer space.

        Returns:
            True if buffered
            False if the stream is (or became) closed
        """
        entry = self.decorate(value)
        await self._wait_until(
            lambda: self._closed or len(self._buffer) < self._maxsize
        )
        if self._closed:
            return False
        self._buffer.append(entry)
        self._notify()
        return True

    def put_nowait(self, value: Any) -> None:
        """
        Offer a value without waiting.

        Raises:
            StreamClosed if the stream is closed
            StreamFull if the buffer is at capacity
        """
        if self._closed:
            raise StreamClosed(self.key)
        if len(self._buffer) >= self._maxsize:
            raise StreamFull(self.key)
        self._buffer.append(self.decorate(value))
        self._notify()

    # -------------------------
    # Consumer side
    # -------------------------

    async def get(self) -> Optional[LogEntry]:
        """
        Take the oldest entry, waiting for one to arrive.

        Returns None once the stream is closed.
        """
        await self._wait_until(lambda: self._closed or bool(self._buffer))
        if self._closed:
            return None
        entry = self._buffer.popleft()
        self._notify()
        return entry

    # -------------------------
    # Lifecycle
    # -------------------------

    def close(self) -> None:
        """
        Close the stream. Idempotent.

        Buffered entries are discarded, not delivered.
        """
        if self._closed:
            return
        self._closed = True
        discarded = len(self._buffer)
        self._buffer.clear()
        self._notify()
        log_event({
            "ts_ms": now_ms(),
            "event_type": "STREAM_CLOSED",
            "stream": self.key,
            "discarded": discarded,
        })

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def maxsize(self) -> int:
        return self._maxsize

    def __len__(self) -> int:
        return len(self._buffer)

    # -------------------------
    # Wakeups
    # -------------------------

    def _notify(self) -> None:
        # Wakes every current waiter; each re-checks its own predicate
        self._changed.set()

    async def _wait_until(self, predicate: Callable[[], bool]) -> None:
        while not predicate():
            self._changed.clear()
            await self._changed.wait()


def log_stream(
    key: str,
    transform: Optional[Transform] = None,
    *,
    maxsize: int = STREAM_BUFFER_SIZE,
) -> LogStream:
    """
    Creates a bounded stream that stamps every value with its key and
    fact time. `transform` is applied to raw values before stamping.
    """
    return LogStream(key, transform=transform, maxsize=maxsize)
