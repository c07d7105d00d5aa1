"""
DatabaseLogger lifecycle host.

Wires named input streams into one merged stream and runs a single
WriterLoop over a segment directory.

- start(): surfaces startup failures (unreadable directory, first
  segment not openable), then launches the writer task
- stop(): closes every input stream and waits for the writer to close
  its current segment; a fatal writer error is re-raised here

There is no other cancellation path: shutdown is expressed solely by
the input streams closing.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from config import AppConfig
from constants import ROTATION_INTERVAL_S, STREAM_BUFFER_SIZE
from observability.logger import log_event, now_ms
from segments.params import Params
from sink.loop import WriterLoop
from sink.state import WriterPhase
from streams.multiplexer import MergedStream, merge
from streams.source import LogStream, log_stream


def build_streams(
    names: tuple[str, ...] | list[str],
    *,
    maxsize: int = STREAM_BUFFER_SIZE,
) -> dict[str, LogStream]:
    """One bounded stream per name, keyed by that name."""
    return {name: log_stream(name, maxsize=maxsize) for name in names}


class DatabaseLogger:
    """
    Persists every entry from `streams` into rotating segment files
    under `dirname`.
    """

    def __init__(
        self,
        dirname: str,
        streams: Mapping[str, LogStream],
        *,
        rotation_interval_s: float = ROTATION_INTERVAL_S,
        echo_entries: bool = True,
    ) -> None:
        self.dirname = dirname
        self.streams: dict[str, LogStream] = dict(streams)
        self._rotation_interval_s = rotation_interval_s
        self._echo_entries = echo_entries

        self._combined: Optional[MergedStream] = None
        self._writer: Optional[WriterLoop] = None
        self._task: Optional[asyncio.Task[None]] = None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        streams: Mapping[str, LogStream] | None = None,
    ) -> DatabaseLogger:
        """Build a logger, creating the configured streams unless given."""
        if streams is None:
            streams = build_streams(config.streams, maxsize=config.stream_buffer_size)
        return cls(
            config.log_dir,
            streams,
            rotation_interval_s=config.rotation_interval_s,
            echo_entries=config.echo_entries,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> DatabaseLogger:
        """
        Open the first segment and launch the writer task.

        Raises:
            DiscoveryError / StoreOpenError, in which case nothing runs.
        """
        if self._task is not None:
            return self

        combined = merge(self.streams)
        writer = WriterLoop(
            self.dirname,
            combined,
            rotation_interval_s=self._rotation_interval_s,
            echo_entries=self._echo_entries,
        )
        await writer.initialize()

        self._combined = combined
        self._writer = writer
        self._task = asyncio.create_task(writer.run())

        params = writer.active_params
        log_event({
            "ts_ms": now_ms(),
            "event_type": "LOGGER_STARTED",
            "dirname": self.dirname,
            "streams": sorted(self.streams),
            "segment": params.path if params is not None else None,
        })
        return self

    async def stop(self) -> None:
        """
        Close all input streams and wait for the writer to reach CLOSED.

        Entries still buffered in the streams are discarded.
        """
        if self._task is None or self._combined is None:
            return

        task, combined = self._task, self._combined
        self._task = None

        combined.close()
        try:
            await task
        finally:
            await combined.aclose()
            log_event({
                "ts_ms": now_ms(),
                "event_type": "LOGGER_STOPPED",
                "dirname": self.dirname,
                "appended": self._writer.appended if self._writer else 0,
                "dropped": self._writer.dropped if self._writer else 0,
            })

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def phase(self) -> WriterPhase | None:
        return self._writer.phase if self._writer is not None else None

    @property
    def active_params(self) -> Params | None:
        return self._writer.active_params if self._writer is not None else None

    @property
    def writer(self) -> WriterLoop | None:
        return self._writer
