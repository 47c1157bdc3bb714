from __future__ import annotations

import asyncio
import logging

import pytest

from client.sdk import GlobalUser, TailRecord, Target, WorkersAPIError
from live_tail.runner import cancellation_signal
from live_tail.runner.registration import TailRegistrar


class DummyClient:
    def __init__(
        self,
        *,
        heartbeat_error: Exception | None = None,
        delete_error: Exception | None = None,
    ) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.heartbeat_error = heartbeat_error
        self.delete_error = delete_error

    def create_tail(self, target: Target, user: GlobalUser, tunnel_url: str) -> TailRecord:
        self.calls.append(("create", target.name, tunnel_url))
        return TailRecord(id="tail-1", url=tunnel_url)

    def send_heartbeat(self, target: Target, user: GlobalUser, tail_id: str) -> TailRecord:
        self.calls.append(("heartbeat", tail_id))
        if self.heartbeat_error is not None:
            raise self.heartbeat_error
        return TailRecord(id=tail_id, url="")

    def delete_tail(self, target: Target, user: GlobalUser, tail_id: str) -> None:
        self.calls.append(("delete", tail_id))
        if self.delete_error is not None:
            raise self.delete_error


def _registrar(client: DummyClient, url: str | None) -> TailRegistrar:
    return TailRegistrar(
        client=client,  # type: ignore[arg-type]
        metrics_url="http://localhost:8081/metrics",
        heartbeat_interval=0.01,
        poll_interval=0.01,
        url_reader=lambda _: url,
    )


def test_registers_heartbeats_and_deletes_on_cancel(target: Target, user: GlobalUser) -> None:
    client = DummyClient()
    registrar = _registrar(client, "https://quiet-river.trycloudflare.com")

    async def scenario() -> None:
        tx, rx = cancellation_signal()
        asyncio.get_running_loop().call_later(0.1, tx.send)
        await asyncio.wait_for(registrar.run(target, user, rx), 2)

    asyncio.run(scenario())
    assert client.calls[0] == ("create", "hello-worker", "https://quiet-river.trycloudflare.com")
    assert ("heartbeat", "tail-1") in client.calls
    assert client.calls[-1] == ("delete", "tail-1")


def test_cancel_before_tunnel_is_ready_skips_registration(
    target: Target, user: GlobalUser
) -> None:
    client = DummyClient()
    registrar = _registrar(client, None)

    async def scenario() -> None:
        tx, rx = cancellation_signal()
        asyncio.get_running_loop().call_later(0.05, tx.send)
        await asyncio.wait_for(registrar.run(target, user, rx), 2)

    asyncio.run(scenario())
    assert client.calls == []


def test_heartbeat_failure_still_deletes_tail(target: Target, user: GlobalUser) -> None:
    client = DummyClient(heartbeat_error=WorkersAPIError("network unreachable"))
    registrar = _registrar(client, "https://quiet-river.trycloudflare.com")

    async def scenario() -> None:
        _, rx = cancellation_signal()
        await asyncio.wait_for(registrar.run(target, user, rx), 2)

    with pytest.raises(WorkersAPIError, match="network unreachable"):
        asyncio.run(scenario())
    assert client.calls[-1] == ("delete", "tail-1")


def test_failed_cleanup_keeps_heartbeat_error(
    caplog: pytest.LogCaptureFixture, target: Target, user: GlobalUser
) -> None:
    client = DummyClient(
        heartbeat_error=WorkersAPIError("heartbeat rejected", status=409),
        delete_error=WorkersAPIError("network unreachable"),
    )
    registrar = _registrar(client, "https://quiet-river.trycloudflare.com")
    caplog.set_level(logging.WARNING, logger="live_tail.runner.registration")

    async def scenario() -> None:
        _, rx = cancellation_signal()
        await asyncio.wait_for(registrar.run(target, user, rx), 2)

    with pytest.raises(WorkersAPIError, match="heartbeat rejected") as excinfo:
        asyncio.run(scenario())
    assert excinfo.value.status == 409
    assert client.calls[-1] == ("delete", "tail-1")
    failures = [r for r in caplog.records if r.getMessage() == "tail.delete_failed"]
    assert len(failures) == 1
    assert failures[0].levelno == logging.WARNING
    assert failures[0].error == "network unreachable"
