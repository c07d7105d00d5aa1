"""
Log entry representation.

An entry is produced by a named input stream and consumed exactly once
by the writer. `fact_time` is captured when the value is produced,
independently of when (or whether) it is durably written.

Data encoding contract:
`data` is persisted as JSON text (`json.dumps`, ensure_ascii=False).
Strings, numbers, booleans, None, lists and string-keyed dicts survive
the round trip; tuples come back as lists. Dict keys that are int, float,
bool or None are coerced to their JSON text, so `{1: "a"}` is stored and
read back as `{"1": "a"}`. Anything else JSON cannot encode (including
other key types) is rejected at write time.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from constants import FACT_TIME_FORMAT, FACT_TIME_MS_DIGITS


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LogEntry:
    """
    One event from one stream.

    type:
        Name of the stream that produced the value
    data:
        Opaque payload
    fact_time:
        UTC moment the stream observed the value
    """

    type: str
    data: Any
    fact_time: datetime = field(default_factory=utc_now)

    def fact_time_text(self) -> str:
        return format_fact_time(self.fact_time)

    def encoded_data(self) -> str:
        return encode_data(self.data)


def format_fact_time(moment: datetime) -> str:
    """Render as `YYYY-MM-DD HH:MM:SS.mmm` in UTC."""
    text = moment.astimezone(timezone.utc).strftime(FACT_TIME_FORMAT)
    # %f is microseconds; keep milliseconds only
    return text[: len(text) - (6 - FACT_TIME_MS_DIGITS)]


def encode_data(data: Any) -> str:
    """
    Encode a payload for the `data` column.

    Scalar dict keys are coerced to strings, as `json.dumps` does.

    Raises:
        TypeError / ValueError if the payload is not JSON encodable.
    """
    return json.dumps(data, ensure_ascii=False)


def decode_data(text: str) -> Any:
    """Inverse of encode_data."""
    return json.loads(text)
