# pylint: disable=missing-module-docstring,missing-function-docstring

import importlib
import json
import time
from pathlib import Path

import dotenv
import pytest
import uvicorn
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from config import AppConfig
from segments.errors import DiscoveryError
from segments.store import read_rows
from server import routes
from server.app import create_app


def make_config(log_dir: Path) -> AppConfig:
    return AppConfig(
        env="test",
        log_dir=str(log_dir),
        streams=("door", "temp"),
        echo_entries=False,
    )


def test_health(tmp_path: Path):
    with TestClient(create_app(make_config(tmp_path))) as client:
        assert client.get("/health").json() == {"status": "ok"}


def test_lifespan_creates_log_dir_and_first_segment(tmp_path: Path):
    log_dir = tmp_path / "logs"

    with TestClient(create_app(make_config(log_dir))) as client:
        body = client.get("/segments").json()

    assert body["phase"] in ("INIT", "RUNNING")
    assert body["active"]["session"] == 1
    assert body["active"]["part"] == 1
    assert [s["path"] for s in body["segments"]] == [body["active"]["path"]]


def test_posted_payloads_are_persisted(tmp_path: Path):
    with TestClient(create_app(make_config(tmp_path))) as client:
        response = client.post("/streams/door", json={"open": True})
        assert response.status_code == 200
        assert response.json() == {"accepted": True, "stream": "door"}

        client.post("/streams/temp", json=21.5)

        # stop() discards buffered entries, so wait for both to be written
        for _ in range(400):
            body = client.get("/segments").json()
            if body["appended"] == 2:
                break
            time.sleep(0.005)
        active = body["active"]["path"]

    rows = read_rows(active)
    assert sorted((r["type"], json.dumps(r["data"])) for r in rows) == [
        ("door", '{"open": true}'),
        ("temp", "21.5"),
    ]


def test_unknown_stream_is_404(tmp_path: Path):
    with TestClient(create_app(make_config(tmp_path))) as client:
        assert client.post("/streams/nope", json=1).status_code == 404


def test_websocket_ingest_acks_each_message(tmp_path: Path):
    with TestClient(create_app(make_config(tmp_path))) as client:
        with client.websocket_connect("/ws/streams/temp") as ws:
            ws.send_text("20.0")
            assert ws.receive_json() == {"accepted": True}

            ws.send_text("{not json")
            assert ws.receive_json() == {"accepted": False, "error": "invalid json"}


def test_websocket_unknown_stream_is_rejected(tmp_path: Path):
    with TestClient(create_app(make_config(tmp_path))) as client:
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/ws/streams/nope") as ws:
                ws.receive_text()


def test_asgi_module_loads_dotenv_once_then_builds_app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    calls: list[int] = []

    def fake_load_dotenv() -> bool:
        calls.append(1)
        monkeypatch.setenv("LOG_STREAMS", "from_dotenv")
        return True

    monkeypatch.setattr(dotenv, "load_dotenv", fake_load_dotenv)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))

    import server.asgi as asgi  # pylint: disable=import-outside-toplevel
    calls.clear()
    asgi = importlib.reload(asgi)

    assert calls == [1]
    assert asgi.config.streams == ("from_dotenv",)
    assert asgi.config.log_dir == str(tmp_path / "logs")
    assert asgi.app.state.config is asgi.config


def test_main_serves_the_asgi_app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("PORT", "8123")
    served: dict[str, object] = {}

    def fake_run(app: object, **kwargs: object) -> None:
        served["app"] = app
        served.update(kwargs)

    monkeypatch.setattr(uvicorn, "run", fake_run)

    import server.asgi as asgi  # pylint: disable=import-outside-toplevel
    importlib.reload(asgi)
    from server.main import main  # pylint: disable=import-outside-toplevel

    main()

    assert served["app"] is asgi.app
    assert served["port"] == 8123


def test_segments_listing_failure_is_503(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    with TestClient(create_app(make_config(tmp_path))) as client:
        def failing_list(dirname: str) -> list[object]:
            raise DiscoveryError(dirname, "permission denied")

        monkeypatch.setattr(routes, "list_segments", failing_list)
        response = client.get("/segments")

    assert response.status_code == 503
    assert "permission denied" in response.json()["detail"]
