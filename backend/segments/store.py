"""
Segment store.

One SQLite file per segment, holding a single `log` table:

    series, session, part, type, data,
    time   (write time, defaulted by SQLite itself),
    t_fact (fact time supplied by the producing stream)

SQLite is used as a reliable, self-describing format; splitting the log
over many small files limits how much a single corrupted file loses.

Concurrency:
- The store performs no locking. All calls for one store come from the
  single writer task, strictly one at a time.
- Blocking SQLite calls run in a worker thread so the event loop keeps
  serving producers during a slow write.
"""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Any

from constants import LOG_TABLE, SQLITE_TIME_FORMAT
from observability.logger import log_event, now_ms
from segments.errors import AppendError, CloseError, StoreOpenError
from segments.params import Params
from streams.entry import LogEntry, decode_data


_CREATE_TABLE_SQL = f"""
    create table if not exists {LOG_TABLE} (
        series, session, part, type, data,
        time datetime default (strftime('{SQLITE_TIME_FORMAT}', 'now')),
        t_fact datetime
    )
"""

_INSERT_SQL = (
    f"insert into {LOG_TABLE} (series, session, part, type, data, t_fact) "
    "values (?, ?, ?, ?, ?, ?)"
)

_SELECT_SQL = (
    f"select series, session, part, type, data, time, t_fact "
    f"from {LOG_TABLE} order by rowid"
)


class SegmentStore:
    """
    Open handle on one segment file.

    Construct with `await SegmentStore.open(params)`.
    """

    def __init__(self, params: Params, conn: sqlite3.Connection) -> None:
        self.params = params
        self._conn: sqlite3.Connection | None = conn

    # -------------------------
    # Lifecycle
    # -------------------------

    @classmethod
    async def open(cls, params: Params) -> SegmentStore:
        """
        Create the segment file if absent and ensure the schema.

        Idempotent on an existing segment.

        Raises:
            StoreOpenError on any I/O or schema failure (fatal to caller).
        """
        conn = await asyncio.to_thread(_connect, params.path)
        return cls(params, conn)

    async def close(self) -> None:
        """
        Flush and close. Best-effort: failures are logged, never raised.

        Safe to call more than once.
        """
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await asyncio.to_thread(_close, self.params.path, conn)
        except CloseError as exc:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "SEGMENT_CLOSE_FAILED",
                "segment": self.params.path,
                "reason": exc.reason,
            })

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # -------------------------
    # Writes
    # -------------------------

    async def append(self, entry: LogEntry) -> None:
        """
        Insert one row for `entry` using this store's segment coordinates.

        Raises:
            AppendError if the payload cannot be encoded or the insert fails.
        """
        conn = self._conn
        if conn is None:
            raise AppendError(self.params.path, entry.type, "segment is closed")

        try:
            data = entry.encoded_data()
        except (TypeError, ValueError) as exc:
            raise AppendError(self.params.path, entry.type, str(exc)) from exc

        row = (
            self.params.series,
            self.params.session,
            self.params.part,
            entry.type,
            data,
            entry.fact_time_text(),
        )
        await asyncio.to_thread(_insert, self.params.path, conn, entry.type, row)


# ------------------------------------------------------------------
# Read-back (tooling / tests)
# ------------------------------------------------------------------

def read_rows(path: str) -> list[dict[str, Any]]:
    """
    Return every row of a segment file in insertion order.

    `data` is decoded back into the original payload structure.
    """
    conn = sqlite3.connect(path)
    try:
        conn.row_factory = sqlite3.Row
        rows = conn.execute(_SELECT_SQL).fetchall()
    finally:
        conn.close()

    result: list[dict[str, Any]] = []
    for row in rows:
        record = dict(row)
        record["data"] = decode_data(record["data"])
        result.append(record)
    return result


# ------------------------------------------------------------------
# Blocking helpers (run in worker threads)
# ------------------------------------------------------------------

def _connect(path: str) -> sqlite3.Connection:
    conn: sqlite3.Connection | None = None
    try:
        # Autocommit: every insert is durable on its own
        conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
        conn.execute(_CREATE_TABLE_SQL)
        return conn
    except (sqlite3.Error, OSError) as exc:
        if conn is not None:
            conn.close()
        raise StoreOpenError(path, str(exc)) from exc


def _insert(
    path: str,
    conn: sqlite3.Connection,
    entry_type: str,
    row: tuple[Any, ...],
) -> None:
    try:
        conn.execute(_INSERT_SQL, row)
    except sqlite3.Error as exc:
        raise AppendError(path, entry_type, str(exc)) from exc


def _close(path: str, conn: sqlite3.Connection) -> None:
    try:
        conn.close()
    except sqlite3.Error as exc:
        raise CloseError(path, str(exc)) from exc
