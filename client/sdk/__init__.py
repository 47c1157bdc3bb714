"""Exported SDK primitives for the Workers API client."""

from .client import WorkersAPIError, WorkersClient
from .models import GlobalUser, TailRecord, Target

__all__ = [
    "GlobalUser",
    "TailRecord",
    "Target",
    "WorkersAPIError",
    "WorkersClient",
]
