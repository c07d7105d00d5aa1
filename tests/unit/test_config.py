# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from config import AppConfig
from constants import ROTATION_INTERVAL_S, STREAM_BUFFER_SIZE


def test_defaults(monkeypatch: pytest.MonkeyPatch):
    for var in (
        "LOG_DIR",
        "LOG_STREAMS",
        "ROTATION_INTERVAL_S",
        "STREAM_BUFFER_SIZE",
        "ECHO_ENTRIES",
        "CREATE_LOG_DIR",
        "PORT",
    ):
        monkeypatch.delenv(var, raising=False)

    config = AppConfig.load_from_env()

    assert config.log_dir == "./logs"
    assert config.streams == ("events",)
    assert config.rotation_interval_s == ROTATION_INTERVAL_S
    assert config.stream_buffer_size == STREAM_BUFFER_SIZE
    assert config.echo_entries is True
    assert config.create_log_dir is True
    assert config.port == 8000


def test_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOG_DIR", "/var/lib/sink")
    monkeypatch.setenv("LOG_STREAMS", "door, temp,,door ")
    monkeypatch.setenv("ROTATION_INTERVAL_S", "90")
    monkeypatch.setenv("STREAM_BUFFER_SIZE", "5")
    monkeypatch.setenv("ECHO_ENTRIES", "0")

    config = AppConfig.load_from_env()

    assert config.log_dir == "/var/lib/sink"
    assert config.streams == ("door", "temp")
    assert config.rotation_interval_s == 90.0
    assert config.stream_buffer_size == 5
    assert config.echo_entries is False


def test_bad_number_raises(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STREAM_BUFFER_SIZE", "lots")

    with pytest.raises(ValueError):
        AppConfig.load_from_env()
