"""cloudflared tunnel exposing the local log server on a public URL."""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import socket
import subprocess
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib import error, request

from live_tail.errors import AcquisitionError, CollaboratorError
from live_tail.runner.cancellation import CancellationReceiver

__all__ = ["CloudflaredTunnel", "TunnelHandle", "parse_public_url", "read_public_url"]

logger = logging.getLogger("live_tail.runner.tunnel")

_HOSTNAME_PATTERN = re.compile(r'userHostname="(?P<url>https?://[^"]+)"')


@dataclass(slots=True)
class TunnelHandle:
    """A started cloudflared process."""

    process: subprocess.Popen[bytes]
    local_url: str
    metrics_url: str
    started_at: datetime

    def to_payload(self) -> dict[str, str | int]:
        return {
            "pid": self.process.pid,
            "local_url": self.local_url,
            "metrics_url": self.metrics_url,
            "started_at": self.started_at.isoformat(),
        }


class CloudflaredTunnel:
    """Start and supervise a quick cloudflared tunnel to the log server."""

    def __init__(
        self,
        *,
        binary: str = "cloudflared",
        local_port: int = 8080,
        metrics_port: int = 8081,
        host: str = "127.0.0.1",
        stop_timeout: float = 5.0,
    ) -> None:
        self.binary = binary
        self.local_port = local_port
        self.metrics_port = metrics_port
        self.host = host
        self.stop_timeout = stop_timeout

    def acquire(self) -> TunnelHandle:
        executable = shutil.which(self.binary)
        if executable is None:
            raise AcquisitionError(f"executable not found: {self.binary}")
        self._ensure_port_free(self.metrics_port)
        local_url = f"{self.host}:{self.local_port}"
        metrics = f"{self.host}:{self.metrics_port}"
        argv = [executable, "tunnel", "--url", local_url, "--metrics", metrics]
        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise AcquisitionError(f"failed to start {self.binary}: {exc}") from exc
        handle = TunnelHandle(
            process=process,
            local_url=local_url,
            metrics_url=f"http://{metrics}/metrics",
            started_at=datetime.now(UTC),
        )
        logger.info("tunnel.started", extra=handle.to_payload())
        return handle

    async def run(self, handle: TunnelHandle, cancel: CancellationReceiver) -> None:
        process = handle.process
        exited = asyncio.create_task(asyncio.to_thread(process.wait))
        cancelled = asyncio.create_task(cancel.wait())
        try:
            await asyncio.wait({exited, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()
            if process.poll() is None:
                await asyncio.to_thread(self._terminate, process)
            returncode = await exited
        logger.info("tunnel.stopped", extra={"pid": process.pid, "returncode": returncode})
        if not cancel.is_notified and returncode != 0:
            raise CollaboratorError("tunnel", f"{self.binary} exited with status {returncode}")

    def _terminate(self, process: subprocess.Popen[bytes]) -> None:
        process.terminate()
        try:
            process.wait(timeout=self.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("tunnel.kill", extra={"pid": process.pid})
            process.kill()
            process.wait()

    def _ensure_port_free(self, port: int) -> None:
        with socket.socket() as sock:
            try:
                sock.bind((self.host, port))
            except OSError as exc:
                raise AcquisitionError(f"port {port} is unavailable: {exc}") from exc


def parse_public_url(metrics: str) -> str | None:
    """Extract the tunnel hostname from cloudflared's Prometheus metrics."""

    match = _HOSTNAME_PATTERN.search(metrics)
    return match.group("url") if match else None


def read_public_url(metrics_url: str, timeout: float = 5.0) -> str | None:
    """Fetch the metrics page; ``None`` while the tunnel is not ready yet."""

    try:
        with request.urlopen(metrics_url, timeout=timeout) as resp:  # noqa: S310
            body = resp.read().decode("utf-8", errors="replace")
    except (error.URLError, ConnectionError, TimeoutError):
        return None
    return parse_public_url(body)
