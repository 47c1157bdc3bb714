"""Application context helpers shared across routers."""

from dataclasses import dataclass, field
from typing import cast

from fastapi import Request

from live_tail.api.streams import LogManager


@dataclass(slots=True)
class AppContext:
    """Container for shared application dependencies."""

    log_manager: LogManager = field(default_factory=LogManager)


def get_app_context(request: Request) -> AppContext:
    """Return the configured :class:`AppContext`."""

    context = getattr(request.app.state, "context", None)
    if context is None:  # pragma: no cover - defensive guard
        raise RuntimeError("Application context missing")
    return cast(AppContext, context)


__all__ = ["AppContext", "get_app_context"]
