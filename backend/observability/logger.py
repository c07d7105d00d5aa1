"""
JSONL event logger and entry echo.

- Diagnostics: one JSON object per line on stdout
- Entry echo: one human readable `[LOG <session> <type>] <data>` line per entry
- No buffering, no batching
- Neither sink is authoritative; neither ever raises
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


# ------------------------------------------------------------------
# Explicit output sinks (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print
_echo_print: Callable[[str], None] = _stdout_print


def now_ms() -> int:
    """Wall-clock milliseconds for event correlation."""
    return time.time_ns() // 1_000_000


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event to stdout.

    The caller is responsible for:
    - Supplying a fully-formed event dict
    - Including ts_ms, event_type, segment coordinates, etc.

    This function:
    - Serializes to JSON
    - Writes exactly one line
    - Flushes immediately (no buffering)
    - Never raises
    """
    try:
        line = json.dumps(event, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback, logging must never crash the writer
        fallback: dict[str, Any] = {
            "ts_ms": event.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)


def echo_entry(session: int | None, entry_type: str, data: Any) -> None:
    """
    Echo one accepted entry as `[LOG <session> <type>] <data>`.

    Purely observational. `session` is None when no segment is
    involved (LogPrinter) and renders as `-`.
    """
    label = "-" if session is None else str(session)
    try:
        rendered = json.dumps(data, ensure_ascii=False)
    except (TypeError, ValueError):
        rendered = repr(data)
    _echo_print(f"[LOG {label} {entry_type}] {rendered}")
