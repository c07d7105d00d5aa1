"""
Rotation timer.

Fires once, a fixed interval after it was armed. Uses monotonic time,
so wall-clock jumps neither delay nor hasten a rotation.
"""

from __future__ import annotations

import time
from typing import Callable

from constants import ROTATION_INTERVAL_S


class RotationTimer:
    """One-shot deadline, re-armed for every new writer state."""

    def __init__(
        self,
        interval_s: float = ROTATION_INTERVAL_S,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")

        self.interval_s = interval_s
        self._clock = clock
        self._deadline = clock() + interval_s

    def remaining(self) -> float:
        """Seconds until the deadline, never negative."""
        return max(0.0, self._deadline - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self._deadline
