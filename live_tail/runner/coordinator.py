"""Tail session coordinator: starts the supervised units and joins their outcomes."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol

from live_tail.errors import CollaboratorError, TailError
from live_tail.runner.cancellation import CancellationReceiver, cancellation_signal
from live_tail.runner.interrupt import InterruptListener, InterruptSource

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from client.config import TailConfig
    from client.sdk.models import GlobalUser, Target

__all__ = [
    "IngestionServer",
    "SessionRegistrar",
    "TailSession",
    "TunnelManager",
]

logger = logging.getLogger("live_tail.runner.coordinator")


class IngestionServer(Protocol):
    async def run(self, cancel: CancellationReceiver) -> None: ...


class TunnelManager(Protocol):
    def acquire(self) -> Any: ...

    async def run(self, handle: Any, cancel: CancellationReceiver) -> None: ...


class SessionRegistrar(Protocol):
    async def run(self, target: Target, user: GlobalUser, cancel: CancellationReceiver) -> None: ...


class TailSession:
    """Run the log server, tunnel and registrar as one interruptible session."""

    def __init__(
        self,
        *,
        log_server: IngestionServer,
        tunnel: TunnelManager,
        registrar: SessionRegistrar,
        interrupts: InterruptSource | None = None,
    ) -> None:
        self.log_server = log_server
        self.tunnel = tunnel
        self.registrar = registrar
        self.interrupts = interrupts

    @classmethod
    def from_config(cls, config: TailConfig) -> TailSession:
        from client.sdk import WorkersClient
        from live_tail.api import LogServer
        from live_tail.runner.registration import TailRegistrar
        from live_tail.runner.tunnel import CloudflaredTunnel

        metrics_url = f"http://127.0.0.1:{config.metrics_port}/metrics"
        return cls(
            log_server=LogServer(port=config.log_port),
            tunnel=CloudflaredTunnel(
                binary=config.cloudflared,
                local_port=config.log_port,
                metrics_port=config.metrics_port,
            ),
            registrar=TailRegistrar(
                client=WorkersClient(base_url=config.api_base_url),
                metrics_url=metrics_url,
                heartbeat_interval=config.heartbeat_interval,
            ),
        )

    def start(self, target: Target, user: GlobalUser) -> None:
        """Blocking entry point used by the CLI."""

        asyncio.run(self.run(target, user))

    async def run(self, target: Target, user: GlobalUser) -> None:
        log_tx, log_rx = cancellation_signal()
        tunnel_tx, tunnel_rx = cancellation_signal()
        registrar_tx, registrar_rx = cancellation_signal()

        listener = InterruptListener([log_tx, tunnel_tx, registrar_tx], self.interrupts)
        tasks = [
            asyncio.create_task(listener.listen(), name="interrupt-listener"),
            self._spawn("log-server", log_rx, lambda: self.log_server.run(log_rx)),
        ]

        # Let the listener subscribe and the log server start before acquiring.
        # A failed acquisition raises here and leaves both of them running.
        await asyncio.sleep(0)
        handle = self.tunnel.acquire()
        logger.info("tail.tunnel_acquired")

        tasks.append(self._spawn("tunnel", tunnel_rx, lambda: self.tunnel.run(handle, tunnel_rx)))
        tasks.append(
            self._spawn(
                "registrar",
                registrar_rx,
                lambda: self.registrar.run(target, user, registrar_rx),
            )
        )

        first_error: Exception | None = None
        for finished in asyncio.as_completed(tasks):
            try:
                await finished
            except Exception as exc:
                if first_error is None:
                    first_error = exc
                else:
                    logger.warning("tail.additional_failure", extra={"error": str(exc)})
        if first_error is not None:
            raise first_error
        logger.info("tail.finished")

    def _spawn(
        self,
        role: str,
        cancel: CancellationReceiver,
        start: Callable[[], Awaitable[None]],
    ) -> asyncio.Task[None]:
        return asyncio.create_task(self._supervise(role, cancel, start), name=role)

    async def _supervise(
        self,
        role: str,
        cancel: CancellationReceiver,
        start: Callable[[], Awaitable[None]],
    ) -> None:
        logger.debug("tail.unit_started", extra={"role": role})
        with cancel:
            try:
                await start()
            except TailError:
                logger.debug("tail.unit_failed", extra={"role": role})
                raise
            except Exception as exc:
                raise CollaboratorError(role, str(exc) or type(exc).__name__) from exc
        logger.debug("tail.unit_finished", extra={"role": role})
