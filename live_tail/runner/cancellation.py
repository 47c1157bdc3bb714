"""Single-use cancellation signals shared between the coordinator and its units."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

__all__ = [
    "CancellationReceiver",
    "CancellationSender",
    "SignalSendError",
    "cancellation_signal",
]


class SignalSendError(RuntimeError):
    """Raised when a notification cannot be delivered."""


@dataclass(slots=True)
class _OneShot:
    notified: asyncio.Event = field(default_factory=asyncio.Event)
    receiver_closed: asyncio.Event = field(default_factory=asyncio.Event)
    sender_closed: bool = False


class CancellationSender:
    """Producer end of a cancellation signal; delivers at most one notification."""

    def __init__(self, state: _OneShot) -> None:
        self._state = state

    @property
    def is_closed(self) -> bool:
        """True once the receiving end has been released."""

        return self._state.receiver_closed.is_set()

    def send(self) -> None:
        state = self._state
        if state.notified.is_set():
            raise SignalSendError("notification already delivered")
        if state.sender_closed:
            raise SignalSendError("sender has been closed")
        if state.receiver_closed.is_set():
            raise SignalSendError("receiver has been closed")
        state.sender_closed = True
        state.notified.set()

    def close(self) -> None:
        """Release the sender without notifying; the receiver keeps waiting."""

        self._state.sender_closed = True

    async def closed(self) -> None:
        """Wait until the receiving end has been released."""

        await self._state.receiver_closed.wait()


class CancellationReceiver:
    """Consumer end of a cancellation signal."""

    def __init__(self, state: _OneShot) -> None:
        self._state = state

    def __enter__(self) -> CancellationReceiver:  # noqa: D401 - context manager
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def is_notified(self) -> bool:
        return self._state.notified.is_set()

    async def wait(self) -> None:
        # A sender released without sending never wakes this up.
        await self._state.notified.wait()

    async def wait_for(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds; return whether cancellation was requested."""

        if self.is_notified:
            return True
        try:
            await asyncio.wait_for(self._state.notified.wait(), timeout)
        except TimeoutError:
            return False
        return True

    def close(self) -> None:
        self._state.receiver_closed.set()


def cancellation_signal() -> tuple[CancellationSender, CancellationReceiver]:
    """Create a connected sender/receiver pair."""

    state = _OneShot()
    return CancellationSender(state), CancellationReceiver(state)
