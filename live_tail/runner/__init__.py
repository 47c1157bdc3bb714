"""Session coordinator, cancellation signals, interrupt handling and the supervised units."""

from .cancellation import (
    CancellationReceiver,
    CancellationSender,
    SignalSendError,
    cancellation_signal,
)
from .coordinator import IngestionServer, SessionRegistrar, TailSession, TunnelManager
from .interrupt import (
    InterruptListener,
    InterruptSource,
    InterruptSubscription,
    interrupt_source,
)

__all__ = [
    "CancellationReceiver",
    "CancellationSender",
    "IngestionServer",
    "InterruptListener",
    "InterruptSource",
    "InterruptSubscription",
    "SessionRegistrar",
    "SignalSendError",
    "TailSession",
    "TunnelManager",
    "cancellation_signal",
    "interrupt_source",
]
