# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest

from config import AppConfig
from observability import logger as obs_logger
from segments.errors import DiscoveryError
from segments.store import read_rows
from sink.logger import DatabaseLogger, build_streams
from sink.printer import LogPrinter
from sink.state import WriterPhase
from streams.source import log_stream


async def wait_until(predicate, timeout: float = 2.0) -> None:
    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(poll(), timeout=timeout)


def test_start_push_stop_persists_and_echoes(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
):
    echoed: list[str] = []
    monkeypatch.setattr(obs_logger, "_echo_print", echoed.append)

    async def scenario() -> DatabaseLogger:
        streams = {"A": log_stream("A")}
        db_logger = await DatabaseLogger(str(tmp_path), streams).start()
        assert db_logger.phase in (WriterPhase.INIT, WriterPhase.RUNNING)

        await streams["A"].put("x")
        await wait_until(lambda: db_logger.writer is not None and db_logger.writer.appended == 1)
        await db_logger.stop()
        return db_logger

    db_logger = asyncio.run(scenario())

    series = datetime.now(timezone.utc).strftime("%Y%m%d")
    path = tmp_path / f"log-series{series}-session0001-part0001.db"
    [row] = read_rows(str(path))
    assert (row["type"], row["data"]) == ("A", "x")

    assert echoed == ['[LOG 1 A] "x"']
    assert db_logger.phase is WriterPhase.CLOSED
    assert db_logger.active_params is None


def test_stop_closes_every_input_stream(tmp_path: Path):
    async def scenario() -> dict:
        streams = build_streams(("A", "B"))
        db_logger = await DatabaseLogger(str(tmp_path), streams, echo_entries=False).start()
        await db_logger.stop()
        # second stop is a no-op
        await db_logger.stop()
        return streams

    streams = asyncio.run(scenario())

    assert all(stream.closed for stream in streams.values())


def test_each_run_writes_a_new_session(tmp_path: Path):
    async def one_run() -> None:
        db_logger = DatabaseLogger(str(tmp_path), {"A": log_stream("A")}, echo_entries=False)
        await db_logger.start()
        await db_logger.stop()

    asyncio.run(one_run())
    asyncio.run(one_run())
    asyncio.run(one_run())

    sessions = sorted(p.name for p in tmp_path.iterdir())
    assert [name.split("-")[2] for name in sessions] == [
        "session0001",
        "session0002",
        "session0003",
    ]


def test_start_fails_fast_on_unreadable_directory(tmp_path: Path):
    async def scenario() -> DatabaseLogger:
        db_logger = DatabaseLogger(str(tmp_path / "missing"), {"A": log_stream("A")})
        with pytest.raises(DiscoveryError):
            await db_logger.start()
        return db_logger

    db_logger = asyncio.run(scenario())

    assert db_logger.writer is None


def test_from_config_builds_configured_streams(tmp_path: Path):
    config = AppConfig(
        env="test",
        log_dir=str(tmp_path),
        streams=("door", "temp"),
        stream_buffer_size=7,
        rotation_interval_s=5.0,
        echo_entries=False,
    )

    db_logger = DatabaseLogger.from_config(config)

    assert db_logger.dirname == str(tmp_path)
    assert sorted(db_logger.streams) == ["door", "temp"]
    assert db_logger.streams["door"].maxsize == 7


def test_log_printer_echoes_without_persisting(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
):
    echoed: list[str] = []
    monkeypatch.setattr(obs_logger, "_echo_print", echoed.append)

    async def scenario() -> LogPrinter:
        streams = {"A": log_stream("A"), "B": log_stream("B")}
        printer = await LogPrinter(streams).start()
        await streams["A"].put(1)
        await wait_until(lambda: printer.printed == 1)
        await streams["B"].put({"k": "v"})
        await wait_until(lambda: printer.printed == 2)
        await printer.stop()
        return printer

    asyncio.run(scenario())

    assert echoed == ["[LOG - A] 1", '[LOG - B] {"k": "v"}']
    assert list(tmp_path.iterdir()) == []
