"""
Route registration for the ingest API.

Responsibilities:
- Define HTTP and WebSocket ingest endpoints
- Push request payloads into the named input streams
- Pull dependencies from app.state

Producers are subject to the same backpressure as in-process ones:
a request waits while its stream buffer is full.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import Body, FastAPI, HTTPException, WebSocket, WebSocketDisconnect, status

from observability.logger import log_event, now_ms
from segments.discovery import list_segments
from segments.errors import DiscoveryError
from segments.params import Params
from sink.logger import DatabaseLogger
from streams.source import LogStream


def _segment_view(params: Params) -> dict[str, Any]:
    return {
        "series": params.series,
        "session": params.session,
        "part": params.part,
        "path": params.path,
    }


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""

    def _stream(name: str) -> LogStream | None:
        streams: dict[str, LogStream] = app.state.streams
        return streams.get(name)

    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.get("/segments")
    async def segments() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        logger: DatabaseLogger = app.state.segment_logger
        try:
            found = await asyncio.to_thread(list_segments, logger.dirname)
        except DiscoveryError as exc:
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc)) from exc

        active = logger.active_params
        writer = logger.writer
        return {
            "segments": [_segment_view(p) for p in found],
            "active": _segment_view(active) if active is not None else None,
            "phase": logger.phase.value if logger.phase is not None else None,
            "appended": writer.appended if writer is not None else 0,
            "dropped": writer.dropped if writer is not None else 0,
        }

    @app.post("/streams/{name}")
    async def push(name: str, payload: Any = Body(...)) -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        stream = _stream(name)
        if stream is None:
            raise HTTPException(status.HTTP_404_NOT_FOUND, f"unknown stream {name!r}")

        if not await stream.put(payload):
            raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, f"stream {name!r} is closed")

        return {"accepted": True, "stream": name}

    @app.websocket("/ws/streams/{name}")
    async def push_ws(ws: WebSocket, name: str) -> None: # pyright: ignore[reportUnusedFunction]
        stream = _stream(name)
        if stream is None:
            await ws.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await ws.accept()
        try:
            while True:
                text = await ws.receive_text()
                try:
                    payload = json.loads(text)
                except ValueError as exc:
                    log_event({
                        "ts_ms": now_ms(),
                        "event_type": "INGEST_REJECTED",
                        "stream": name,
                        "reason": str(exc),
                    })
                    await ws.send_json({"accepted": False, "error": "invalid json"})
                    continue

                accepted = await stream.put(payload)
                await ws.send_json({"accepted": accepted})
                if not accepted:
                    await ws.close()
                    return

        except WebSocketDisconnect:
            return
