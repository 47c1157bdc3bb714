"""Pydantic schemas shared across API routers."""

from __future__ import annotations

from pydantic import BaseModel


class APIMessage(BaseModel):
    """Simple message envelope."""

    message: str


__all__ = ["APIMessage"]
