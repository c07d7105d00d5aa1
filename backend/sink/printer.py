"""
LogPrinter: stdout-only stand-in for DatabaseLogger.

Same start()/stop() surface and the same stream wiring, but entries are
only echoed, never persisted. Useful when debugging producers.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from observability.logger import echo_entry
from streams.multiplexer import MergedStream, merge
from streams.source import LogStream


class LogPrinter:
    def __init__(self, streams: Mapping[str, LogStream]) -> None:
        self.streams: dict[str, LogStream] = dict(streams)
        self._combined: Optional[MergedStream] = None
        self._task: Optional[asyncio.Task[None]] = None
        self.printed = 0

    async def start(self) -> LogPrinter:
        if self._task is None:
            self._combined = merge(self.streams)
            self._task = asyncio.create_task(self._print_loop(self._combined))
        return self

    async def stop(self) -> None:
        if self._task is None or self._combined is None:
            return
        task, combined = self._task, self._combined
        self._task = None
        combined.close()
        try:
            await task
        finally:
            await combined.aclose()

    async def _print_loop(self, combined: MergedStream) -> None:
        while True:
            entry = await combined.get()
            if entry is None:
                return
            echo_entry(None, entry.type, entry.data)
            self.printed += 1
