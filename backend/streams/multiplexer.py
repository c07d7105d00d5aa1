"""
Stream multiplexer.

Merges any number of LogStreams into one consumption point.

Rules:
- Whatever arrives first from any source is yielded first
- No fairness between sources beyond arrival order
- The merged stream is closed once every source has closed
- One outstanding read per source; reads outlive a cancelled get(),
  so nothing already taken from a source is ever lost
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Deque, Mapping, Optional

from streams.entry import LogEntry
from streams.source import LogStream


class MergedStream:
    """Single reader view over several named LogStreams."""

    def __init__(self, sources: Mapping[str, LogStream]) -> None:
        self._sources: dict[str, LogStream] = dict(sources)
        self._open: set[str] = set(self._sources)
        self._reads: dict[asyncio.Task[Optional[LogEntry]], str] = {}
        self._ready: Deque[LogEntry] = deque()

    @property
    def sources(self) -> Mapping[str, LogStream]:
        return self._sources

    @property
    def closed(self) -> bool:
        """True once every source has closed and nothing is left to yield."""
        return not self._open and not self._ready

    async def get(self) -> Optional[LogEntry]:
        """
        Next entry from any source.

        Returns None once all sources are closed.
        """
        while not self._ready:
            self._arm_reads()
            if not self._reads:
                return None

            done, _ = await asyncio.wait(
                self._reads.keys(),
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in done:
                name = self._reads.pop(task)
                entry = task.result()
                if entry is None:
                    self._open.discard(name)
                else:
                    self._ready.append(entry)

        return self._ready.popleft()

    def close(self) -> None:
        """Close every source. The merged stream follows on the next get()."""
        for source in self._sources.values():
            source.close()

    async def aclose(self) -> None:
        """Close every source and retire outstanding reads."""
        self.close()
        if self._reads:
            await asyncio.gather(*self._reads, return_exceptions=True)
            self._reads.clear()
        self._open.clear()
        self._ready.clear()

    def _arm_reads(self) -> None:
        reading = set(self._reads.values())
        for name in self._open:
            if name not in reading:
                task = asyncio.ensure_future(self._sources[name].get())
                self._reads[task] = name


def merge(sources: Mapping[str, LogStream]) -> MergedStream:
    """One combined stream yielding whatever arrives from any source."""
    return MergedStream(sources)
