"""Process interrupt handling and cancellation fan-out."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Iterable

from live_tail.errors import ListenerError
from live_tail.runner.cancellation import CancellationSender, SignalSendError

__all__ = [
    "InterruptListener",
    "InterruptSource",
    "InterruptSubscription",
    "interrupt_source",
]

logger = logging.getLogger("live_tail.runner.interrupt")

_DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class InterruptSubscription:
    """One listener's view of the interrupt source; fires at most once."""

    def __init__(self, source: InterruptSource) -> None:
        self._source = source
        self._event = asyncio.Event()

    def __enter__(self) -> InterruptSubscription:  # noqa: D401 - context manager
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def triggered(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def close(self) -> None:
        self._source._release(self)

    def _deliver(self) -> None:
        self._event.set()


class InterruptSource:
    """An operator stop request, delivered through the running event loop.

    Signal handlers are installed when the first subscription is taken on a loop
    and removed again once the last one is closed, so every session starts with
    a fresh, unfired subscription.
    """

    def __init__(self, signals: Iterable[signal.Signals] = _DEFAULT_SIGNALS) -> None:
        self._signals = tuple(signals)
        self._subscriptions: list[InterruptSubscription] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self.deliveries = 0

    def subscribe(self) -> InterruptSubscription:
        """Return a new subscription, installing the signal handlers if needed."""

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise ListenerError("interrupt subscription requires a running event loop") from exc
        if self._loop is not None and self._loop is not loop:
            if not self._loop.is_closed():
                raise ListenerError("interrupt source is already bound to another event loop")
            self._subscriptions.clear()
            self._loop = None
        if self._loop is None:
            for sig in self._signals:
                try:
                    loop.add_signal_handler(sig, self.trigger)
                except (NotImplementedError, RuntimeError, ValueError) as exc:
                    self._remove_handlers(loop)
                    raise ListenerError(f"cannot subscribe to {sig.name}: {exc}") from exc
            self._loop = loop
        subscription = InterruptSubscription(self)
        self._subscriptions.append(subscription)
        return subscription

    def trigger(self) -> None:
        self.deliveries += 1
        pending = [sub for sub in self._subscriptions if not sub.triggered]
        if not pending:
            logger.debug("interrupt.repeat", extra={"deliveries": self.deliveries})
            return
        logger.info("interrupt.received", extra={"subscribers": len(pending)})
        for subscription in pending:
            subscription._deliver()

    def _release(self, subscription: InterruptSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
        if not self._subscriptions and self._loop is not None:
            if not self._loop.is_closed():
                self._remove_handlers(self._loop)
            self._loop = None

    def _remove_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self._signals:
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.debug("interrupt.remove_failed", extra={"signal": sig.name})


_SOURCE: InterruptSource | None = None


def interrupt_source() -> InterruptSource:
    """Return the process-wide :class:`InterruptSource`."""

    global _SOURCE
    if _SOURCE is None:
        _SOURCE = InterruptSource()
    return _SOURCE


class InterruptListener:
    """Wait for one interrupt and notify every registered sender."""

    def __init__(
        self,
        senders: Iterable[CancellationSender],
        source: InterruptSource | None = None,
    ) -> None:
        self._senders = list(senders)
        self._source = source or interrupt_source()
        self.fired = False

    async def listen(self) -> None:
        """Fan out the interrupt, or return once every receiver has been released."""

        with self._source.subscribe() as subscription:
            interrupted = asyncio.create_task(subscription.wait())
            released = asyncio.create_task(self._receivers_released())
            try:
                done, _ = await asyncio.wait(
                    {interrupted, released}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                interrupted.cancel()
                released.cancel()
        if interrupted in done:
            self._fire()
        else:
            logger.debug("interrupt.unused", extra={"senders": len(self._senders)})
        for sender in self._senders:
            sender.close()

    def _fire(self) -> None:
        if self.fired:
            return
        self.fired = True
        for sender in self._senders:
            try:
                sender.send()
            except SignalSendError:
                # The unit already exited on its own; nothing left to stop.
                logger.debug("interrupt.receiver_gone")

    async def _receivers_released(self) -> None:
        await asyncio.gather(*(sender.closed() for sender in self._senders))
