"""
Writer loop phases and working state.

Rules:
- WriterState is owned exclusively by the writer loop.
- It is replaced wholesale on rotation, never mutated in place.
- The old store is closed before the replacement's store is opened.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from segments.params import Params
from segments.store import SegmentStore
from sink.scheduler import RotationTimer


class WriterPhase(str, Enum):
    """
    INIT -> RUNNING <-> ROTATING -> CLOSING -> CLOSED
    """

    INIT = "INIT"
    RUNNING = "RUNNING"
    ROTATING = "ROTATING"
    CLOSING = "CLOSING"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class WriterState:
    """Current segment, its open store, and the armed rotation deadline."""

    params: Params
    store: SegmentStore
    timer: RotationTimer
