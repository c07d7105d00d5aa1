"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No segment naming rules
- No behavioral constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import ROTATION_INTERVAL_S, STREAM_BUFFER_SIZE


def _parse_streams(raw: str) -> tuple[str, ...]:
    """Split a comma separated stream list, dropping blanks and duplicates."""
    names: list[str] = []
    for part in raw.split(","):
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return tuple(names)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory and the logger host.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str

    # ------------------------------------------------------------------
    # Segment log
    # ------------------------------------------------------------------

    log_dir: str
    streams: tuple[str, ...]
    rotation_interval_s: float = ROTATION_INTERVAL_S
    stream_buffer_size: int = STREAM_BUFFER_SIZE
    create_log_dir: bool = True

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    echo_entries: bool = True

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"
    port: int = 8000

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable cannot be parsed.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),

            log_dir=os.environ.get("LOG_DIR", "./logs"),
            streams=_parse_streams(os.environ.get("LOG_STREAMS", "events")),
            rotation_interval_s=float(
                os.environ.get("ROTATION_INTERVAL_S", str(ROTATION_INTERVAL_S))
            ),
            stream_buffer_size=int(
                os.environ.get("STREAM_BUFFER_SIZE", str(STREAM_BUFFER_SIZE))
            ),
            create_log_dir=os.environ.get("CREATE_LOG_DIR", "1") == "1",

            echo_entries=os.environ.get("ECHO_ENTRIES", "1") == "1",

            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "8000")),
        )
