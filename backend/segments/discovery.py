"""
Segment discovery.

Scans a directory for existing segment files and picks the identity
of the next one to write.

Ordering note:
Segments are ordered by `series` only, never by the full
(series, session, part) tuple. Candidates are visited in filename order
first and the sort is stable, so among segments sharing a series the
zero-padded filename order decides which one comes last.
"""

from __future__ import annotations

import os
from datetime import datetime

from segments.errors import DiscoveryError
from segments.params import Params, first_params, parse_name


def list_segments(dirname: str) -> list[Params]:
    """
    Returns the segments found in `dirname`, sorted by series.

    Entries that do not match the filename grammar are ignored.

    Raises:
        DiscoveryError if the directory cannot be read.
    """
    try:
        names = sorted(os.listdir(dirname))
    except OSError as exc:
        raise DiscoveryError(dirname, exc.strerror or str(exc)) from exc

    segments = [
        params
        for params in (parse_name(dirname, name) for name in names)
        if params is not None
    ]
    segments.sort(key=lambda params: params.series)
    return segments


def next_params(dirname: str, now: datetime | None = None) -> Params:
    """
    Returns the Params for a new segment file.

    - Existing segments: same series as the last one, session + 1, part 1
    - Empty directory: today's UTC date as series, session 1, part 1

    A fresh run never reuses a prior session, so the result never names
    a file that is already on disk, whatever part count the previous
    run reached.

    Session numbers are zero-padded to four digits, and the last segment
    is picked by filename order. Past session 9999 that order breaks
    (`session10000` sorts before `session9999`), so the result is only
    guaranteed unused up to session 9999.
    """
    segments = list_segments(dirname)
    if segments:
        return segments[-1].next_session()
    return first_params(dirname, now)
