"""Log ingestion server: FastAPI app, batch store and uvicorn runner."""

from .main import create_app
from .server import LogServer
from .streams import LogBatch, LogManager

__all__ = ["LogBatch", "LogManager", "LogServer", "create_app"]
