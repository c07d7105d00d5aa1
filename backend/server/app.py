"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Own the DatabaseLogger lifecycle (start on startup, stop on shutdown)
- Register routes
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from config import AppConfig
from sink.logger import DatabaseLogger, build_streams

from server.routes import register_routes


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with different configurations
    - Environment-specific setup
    - ASGI server compatibility
    """
    config = config or AppConfig.load_from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if config.create_log_dir:
            os.makedirs(config.log_dir, exist_ok=True)

        # Streams must be created inside the serving event loop
        streams = build_streams(config.streams, maxsize=config.stream_buffer_size)
        logger = DatabaseLogger.from_config(config, streams)
        await logger.start()

        app.state.streams = streams
        app.state.segment_logger = logger
        try:
            yield
        finally:
            await logger.stop()

    app = FastAPI(title="Segment Log Sink", lifespan=lifespan)
    app.state.config = config

    register_routes(app)

    return app
