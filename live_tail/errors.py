"""Exceptions raised while supervising a tail session."""

from __future__ import annotations


class TailError(RuntimeError):
    """Base class for tail session failures."""


class AcquisitionError(TailError):
    """Raised when a prerequisite resource (e.g. the tunnel executable) is unavailable."""


class CollaboratorError(TailError):
    """Raised when a supervised unit terminates with a failure."""

    def __init__(self, role: str, message: str) -> None:
        super().__init__(f"{role}: {message}")
        self.role = role
        self.message = message


class ListenerError(TailError):
    """Raised when the process interrupt subscription cannot be established."""


__all__ = ["AcquisitionError", "CollaboratorError", "ListenerError", "TailError"]
