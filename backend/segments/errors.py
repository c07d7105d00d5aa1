"""
Segment log error taxonomy.

| Kind            | Disposition                                  |
|-----------------|----------------------------------------------|
| DiscoveryError  | fatal, aborts startup                        |
| StoreOpenError  | fatal, aborts startup or rotation            |
| AppendError     | logged by the writer, entry dropped          |
| CloseError      | ignored, close is best-effort                |

There are no retries anywhere: a dropped entry is permanently lost.
"""

from __future__ import annotations


class SegmentLogError(Exception):
    """Base class for all segment log failures."""


class DiscoveryError(SegmentLogError):
    """The segment directory could not be read."""

    def __init__(self, dirname: str, reason: str) -> None:
        super().__init__(f"cannot list segments in {dirname!r}: {reason}")
        self.dirname = dirname
        self.reason = reason


class StoreOpenError(SegmentLogError):
    """A segment file could not be created or its schema ensured."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot open segment {path!r}: {reason}")
        self.path = path
        self.reason = reason


class AppendError(SegmentLogError):
    """One entry could not be written. Non-fatal."""

    def __init__(self, path: str, entry_type: str, reason: str) -> None:
        super().__init__(f"cannot append {entry_type!r} entry to {path!r}: {reason}")
        self.path = path
        self.entry_type = entry_type
        self.reason = reason


class CloseError(SegmentLogError):
    """A segment could not be closed cleanly. Never propagated."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot close segment {path!r}: {reason}")
        self.path = path
        self.reason = reason
