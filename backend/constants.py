"""
CONSTANTS
---------
Single source of truth for all behavioral constants of the event log sink.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Input streams
# =============================================================================

# Capacity of each named input stream; producers block when it is full
STREAM_BUFFER_SIZE: Final[int] = 100

# =============================================================================
# Segment rotation
# =============================================================================

ROTATION_INTERVAL_S: Final[float] = 60 * 60.0

FIRST_SESSION: Final[int] = 1
FIRST_PART: Final[int] = 1

# =============================================================================
# Segment filenames
# =============================================================================
# <dirname>/log-series<series>-session<session:04d>-part<part:04d>.db

SEGMENT_PREFIX: Final[str] = "log-series"
SEGMENT_SUFFIX: Final[str] = ".db"
SEGMENT_NUMBER_WIDTH: Final[int] = 4

# Series label for a brand new log directory: UTC date, e.g. 20151222
SERIES_DATE_FORMAT: Final[str] = "%Y%m%d"

# =============================================================================
# Segment schema
# =============================================================================

LOG_TABLE: Final[str] = "log"

# Fact times are rendered with millisecond precision, e.g. 2015-12-22 13:37:00.123
FACT_TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S.%f"
FACT_TIME_MS_DIGITS: Final[int] = 3

# Write-time default evaluated by SQLite itself
SQLITE_TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%f"
