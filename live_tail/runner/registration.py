"""Register the tail with the Workers API and keep it alive with heartbeats."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from client.sdk import GlobalUser, TailRecord, Target, WorkersAPIError, WorkersClient
from live_tail.runner.cancellation import CancellationReceiver
from live_tail.runner.tunnel import read_public_url

__all__ = ["TailRegistrar"]

logger = logging.getLogger("live_tail.runner.registration")


class TailRegistrar:
    """Bind the tunnel URL to the Worker's trace output until cancelled."""

    def __init__(
        self,
        *,
        client: WorkersClient,
        metrics_url: str,
        heartbeat_interval: float = 60.0,
        poll_interval: float = 0.5,
        url_reader: Callable[[str], str | None] = read_public_url,
    ) -> None:
        self.client = client
        self.metrics_url = metrics_url
        self.heartbeat_interval = heartbeat_interval
        self.poll_interval = poll_interval
        self._read_url = url_reader

    async def run(self, target: Target, user: GlobalUser, cancel: CancellationReceiver) -> None:
        tunnel_url = await self._wait_for_tunnel(cancel)
        if tunnel_url is None:
            return
        tail = await asyncio.to_thread(self.client.create_tail, target, user, tunnel_url)
        logger.info("tail.registered", extra={"tail_id": tail.id, "script": target.name})
        try:
            await self._heartbeat(target, user, tail, cancel)
        except BaseException:
            # Keep the heartbeat failure as the reported cause.
            try:
                await self._delete(target, user, tail)
            except WorkersAPIError as exc:
                logger.warning(
                    "tail.delete_failed", extra={"tail_id": tail.id, "error": str(exc)}
                )
            raise
        await self._delete(target, user, tail)

    async def _delete(self, target: Target, user: GlobalUser, tail: TailRecord) -> None:
        await asyncio.to_thread(self.client.delete_tail, target, user, tail.id)
        logger.info("tail.deleted", extra={"tail_id": tail.id})

    async def _wait_for_tunnel(self, cancel: CancellationReceiver) -> str | None:
        """Poll the tunnel metrics until a public URL is published."""

        while True:
            url = await asyncio.to_thread(self._read_url, self.metrics_url)
            if url:
                logger.info("tail.tunnel_url", extra={"tunnel_url": url})
                return url
            if await cancel.wait_for(self.poll_interval):
                return None

    async def _heartbeat(
        self,
        target: Target,
        user: GlobalUser,
        tail: TailRecord,
        cancel: CancellationReceiver,
    ) -> None:
        while not await cancel.wait_for(self.heartbeat_interval):
            await asyncio.to_thread(self.client.send_heartbeat, target, user, tail.id)
            logger.debug("tail.heartbeat", extra={"tail_id": tail.id})
