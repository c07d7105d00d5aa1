"""
Run the ingest server with uvicorn.

    segment-log-sink
"""

from __future__ import annotations

import uvicorn


def main() -> None:
    # Importing the ASGI module applies .env and builds the app
    from server.asgi import app, config  # pylint: disable=import-outside-toplevel

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
