"""
Segment writer loop.

Responsibilities:
- Own the current WriterState (segment params, open store, deadline)
- Consume the merged stream, one entry at a time
- Rotate to the next part when the deadline passes
- Close the current segment once every input stream has closed

Concurrency:
- Exactly one writer task per logger; every open/append/close goes
  through it, strictly serialized
- The task suspends only while waiting for the next entry or the
  rotation deadline, whichever comes first
- An append is awaited before the next entry is taken, so a slow store
  fills the stream buffers and blocks producers instead of dropping

Tie-break:
- A deadline that has already passed is handled before the next entry
  is taken, so rotation is never starved by a busy stream
- The outstanding read survives a rotation; the entry it yields lands
  in the new part

Failure semantics:
- Discovery and store-open failures propagate and end the loop
- Append failures are logged and only that entry is dropped
- Close failures are swallowed by the store
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from constants import ROTATION_INTERVAL_S
from observability.logger import echo_entry, log_event, now_ms
from observability.metrics import timed
from segments.discovery import next_params
from segments.errors import AppendError
from segments.params import Params
from segments.store import SegmentStore
from sink.scheduler import RotationTimer
from sink.state import WriterPhase, WriterState
from streams.entry import LogEntry
from streams.multiplexer import MergedStream


class WriterLoop:
    """
    Single writer over a directory of rotating segment files.

    Usage:
        loop = WriterLoop(dirname, merge(streams))
        await loop.initialize()   # optional; surfaces startup failures early
        await loop.run()          # returns once all streams have closed
    """

    def __init__(
        self,
        dirname: str,
        combined: MergedStream,
        *,
        rotation_interval_s: float = ROTATION_INTERVAL_S,
        echo_entries: bool = True,
        new_timer: Optional[Callable[[], RotationTimer]] = None,
    ) -> None:
        self._dirname = dirname
        self._combined = combined
        self._echo_entries = echo_entries
        self._new_timer = new_timer or (lambda: RotationTimer(rotation_interval_s))

        self._phase = WriterPhase.INIT
        self._state: WriterState | None = None

        self.appended = 0
        self.dropped = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def phase(self) -> WriterPhase:
        return self._phase

    @property
    def active_params(self) -> Params | None:
        """Coordinates of the segment currently written, if any."""
        if self._state is None or self._phase is WriterPhase.CLOSED:
            return None
        return self._state.params

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        INIT: pick the next segment, open it, arm the rotation timer.

        Raises:
            DiscoveryError if the directory cannot be read
            StoreOpenError if the first segment cannot be opened
        """
        if self._state is not None:
            return
        params = next_params(self._dirname)
        self._state = await self._open_state(params)

    async def run(self) -> None:
        """
        Write entries until every input stream has closed.

        The current segment is always closed on the way out, including
        when a fatal error propagates.
        """
        read: asyncio.Task[Optional[LogEntry]] | None = None
        try:
            await self.initialize()
            self._enter(WriterPhase.RUNNING)

            while True:
                state = self._current()
                if state.timer.expired():
                    await self._rotate(state)
                    continue

                if read is None:
                    read = asyncio.ensure_future(self._combined.get())

                done, _ = await asyncio.wait({read}, timeout=state.timer.remaining())
                if not done:
                    # Deadline reached first; keep the read for the next part
                    continue

                entry = read.result()
                read = None
                if entry is None:
                    break

                await self._append(state, entry)

        except Exception as exc:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "WRITER_FATAL",
                "phase": self._phase.value,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            raise

        finally:
            if read is not None and not read.done():
                read.cancel()
            await self._shutdown()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _rotate(self, state: WriterState) -> None:
        """ROTATING: close the current part, open part + 1, re-arm."""
        self._enter(WriterPhase.ROTATING)
        params = state.params.next_part()

        with timed("segment_rotate", segment=params.path):
            await state.store.close()
            self._state = await self._open_state(params)

        log_event({
            "ts_ms": now_ms(),
            "event_type": "SEGMENT_ROTATED",
            "previous": state.params.path,
            "segment": params.path,
            "series": params.series,
            "session": params.session,
            "part": params.part,
        })
        self._enter(WriterPhase.RUNNING)

    async def _append(self, state: WriterState, entry: LogEntry) -> None:
        if self._echo_entries:
            echo_entry(state.params.session, entry.type, entry.data)

        try:
            await state.store.append(entry)
        except AppendError as exc:
            self.dropped += 1
            log_event({
                "ts_ms": now_ms(),
                "event_type": "APPEND_FAILED",
                "segment": state.params.path,
                "type": entry.type,
                "reason": exc.reason,
            })
            return

        self.appended += 1

    async def _shutdown(self) -> None:
        """CLOSING -> CLOSED."""
        self._enter(WriterPhase.CLOSING)
        if self._state is not None:
            await self._state.store.close()
            log_event({
                "ts_ms": now_ms(),
                "event_type": "SEGMENT_CLOSED",
                "segment": self._state.params.path,
                "appended": self.appended,
                "dropped": self.dropped,
            })
        self._enter(WriterPhase.CLOSED)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _open_state(self, params: Params) -> WriterState:
        with timed("segment_open", segment=params.path):
            store = await SegmentStore.open(params)

        log_event({
            "ts_ms": now_ms(),
            "event_type": "SEGMENT_OPENED",
            "segment": params.path,
            "series": params.series,
            "session": params.session,
            "part": params.part,
        })
        return WriterState(params=params, store=store, timer=self._new_timer())

    def _current(self) -> WriterState:
        assert self._state is not None, "writer loop not initialized"
        return self._state

    def _enter(self, phase: WriterPhase) -> None:
        if phase is self._phase:
            return
        log_event({
            "ts_ms": now_ms(),
            "event_type": "WRITER_PHASE",
            "from": self._phase.value,
            "to": phase.value,
        })
        self._phase = phase
