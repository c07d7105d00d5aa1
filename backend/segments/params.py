"""
Segment identity and filename grammar.

A segment file is named

    <dirname>/log-series<series>-session<session:04d>-part<part:04d>.db

- series:  opaque label without separators, conventionally a UTC date
- session: bumped once per process run
- part:    bumped once per rotation within a session

Numbering is deliberately independent of the wall clock after the
series is chosen, so a broken real-time clock cannot reorder files.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from constants import (
    FIRST_PART,
    FIRST_SESSION,
    SEGMENT_NUMBER_WIDTH,
    SEGMENT_PREFIX,
    SEGMENT_SUFFIX,
    SERIES_DATE_FORMAT,
)


_SEGMENT_NAME_RE = re.compile(
    re.escape(SEGMENT_PREFIX)
    + r"(?P<series>[^-/\\]+)"
    + r"-session(?P<session>\d+)"
    + r"-part(?P<part>\d+)"
    + re.escape(SEGMENT_SUFFIX)
)


@dataclass(frozen=True)
class Params:
    """
    Identifies one segment file.

    `(series, session, part)` is unique per file within `dirname`.
    """

    dirname: str
    series: str
    session: int
    part: int

    @property
    def path(self) -> str:
        return format_path(self)

    def next_part(self) -> Params:
        """Params of the segment that follows this one after a rotation."""
        return replace(self, part=self.part + 1)

    def next_session(self) -> Params:
        """Params of the first segment of the following process run."""
        return replace(self, session=self.session + 1, part=FIRST_PART)


def format_name(series: str, session: int, part: int) -> str:
    """Bare segment filename without directory."""
    return (
        f"{SEGMENT_PREFIX}{series}"
        f"-session{session:0{SEGMENT_NUMBER_WIDTH}d}"
        f"-part{part:0{SEGMENT_NUMBER_WIDTH}d}"
        f"{SEGMENT_SUFFIX}"
    )


def format_path(params: Params) -> str:
    """
    Full segment path for `params`: `<dirname>/<name>`.

    `dirname` is used verbatim, trailing separator included, so that
    parse_path recovers it exactly.
    """
    name = format_name(params.series, params.session, params.part)
    return f"{params.dirname}/{name}"


def parse_name(dirname: str, name: str) -> Params | None:
    """
    Parse a bare filename found in `dirname`.

    Returns None for anything that does not match the grammar.
    """
    match = _SEGMENT_NAME_RE.fullmatch(name)
    if match is None:
        return None
    return Params(
        dirname=dirname,
        series=match.group("series"),
        session=int(match.group("session")),
        part=int(match.group("part")),
    )


def parse_path(path: str) -> Params | None:
    """
    Inverse of format_path.

    Everything before the last `/` is the dirname.
    Returns None for paths without a directory part or whose filename
    does not match the grammar.
    """
    dirname, sep, name = path.rpartition("/")
    if not sep:
        return None
    return parse_name(dirname, name)


def new_series_name(now: datetime | None = None) -> str:
    """Returns a series label for today's UTC date, e.g. 20151222."""
    moment = now if now is not None else datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime(SERIES_DATE_FORMAT)


def first_params(dirname: str, now: datetime | None = None) -> Params:
    """Params for a directory holding no segments at all."""
    return Params(
        dirname=dirname,
        series=new_series_name(now),
        session=FIRST_SESSION,
        part=FIRST_PART,
    )
