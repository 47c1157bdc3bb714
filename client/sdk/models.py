"""Lightweight dataclasses shared by the Workers API SDK."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


def _from_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


@dataclass(frozen=True, slots=True)
class Target:
    """The deployed Worker script a tail is attached to."""

    account_id: str
    name: str

    @property
    def tails_path(self) -> str:
        return f"/accounts/{self.account_id}/workers/scripts/{self.name}/tails"


@dataclass(frozen=True, slots=True)
class GlobalUser:
    """Credentials used to authenticate against the Workers API."""

    api_token: str | None = None
    email: str | None = None
    api_key: str | None = None

    def __post_init__(self) -> None:
        if not self.api_token and not (self.email and self.api_key):
            raise ValueError("Provide an API token or both an email and a global API key.")

    def auth_headers(self) -> dict[str, str]:
        if self.api_token:
            return {"Authorization": f"Bearer {self.api_token}"}
        return {"X-Auth-Email": str(self.email), "X-Auth-Key": str(self.api_key)}


@dataclass
class TailRecord:
    id: str
    url: str
    expires_on: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TailRecord:
        expires = data.get("expires_on")
        return cls(
            id=str(data["id"]),
            url=str(data.get("url", "")),
            expires_on=_from_iso(str(expires)) if expires else None,
        )
