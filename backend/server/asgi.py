"""
ASGI entry point.

Used by uvicorn / gunicorn:

    uvicorn server.asgi:app

This is the only place `.env` is read. Configuration is resolved once,
after the environment file is applied, and handed to the app factory.
"""

from dotenv import load_dotenv

load_dotenv()

from config import AppConfig  # pylint: disable=wrong-import-position
from server.app import create_app  # pylint: disable=wrong-import-position

config = AppConfig.load_from_env()
app = create_app(config)
