"""Serve the log ingestion app until the session is cancelled."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
from collections.abc import Iterator

import uvicorn

from live_tail.api.context import AppContext
from live_tail.api.main import create_app
from live_tail.runner.cancellation import CancellationReceiver

__all__ = ["LogServer"]

logger = logging.getLogger("live_tail.api.server")


class _SessionServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to the session's interrupt source."""

    def install_signal_handlers(self) -> None:  # pragma: no cover - older uvicorn
        return None

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class LogServer:
    """Local HTTP endpoint that receives and prints trace log batches."""

    def __init__(
        self,
        *,
        host: str = "127.0.0.1",
        port: int = 8080,
        context: AppContext | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.context = context or AppContext()
        self.bound_port: int | None = None

    async def run(self, cancel: CancellationReceiver) -> None:
        sock = self._bind()
        try:
            self.bound_port = int(sock.getsockname()[1])
            config = uvicorn.Config(
                create_app(self.context),
                log_level="warning",
                lifespan="off",
            )
            server = _SessionServer(config)
            serving = asyncio.create_task(server.serve(sockets=[sock]))
            cancelled = asyncio.create_task(cancel.wait())
            logger.info("log_server.listening", extra={"host": self.host, "port": self.bound_port})
            try:
                await asyncio.wait({serving, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                cancelled.cancel()
                server.should_exit = True
                await serving
        finally:
            sock.close()
            logger.info("log_server.stopped", extra={"port": self.bound_port})

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
        except OSError:
            sock.close()
            raise
        return sock
