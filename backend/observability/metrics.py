"""
Timing helpers for observability.

Responsibilities:
- Measure durations using monotonic time (immune to clock changes)
- Emit metrics as JSONL events via observability.logger
- Never aggregate: one metric = one log event

Durations use monotonic time. Event timestamps (ts_ms) use wall-clock
time for readability only; the sink never trusts the wall clock for
ordering.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability import logger


@contextmanager
def timed(
    name: str,
    *,
    segment: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[None]:
    """
    Context manager for measuring durations safely.

    Guarantees:
    - Metric is emitted exactly once
    - Exceptions inside the block are NOT suppressed, the metric
      records `ok=False` instead

    Usage:
        with timed("segment_open", segment=path):
            await SegmentStore.open(params)
    """
    start_ns = time.monotonic_ns()
    ok = False
    try:
        yield
        ok = True
    finally:
        logger.log_event({
            "ts_ms": logger.now_ms(),
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": (time.monotonic_ns() - start_ns) // 1_000_000,
            "ok": ok,
            "segment": segment,
            "details": details or {},
        })
