"""HTTP client powered by urllib for the Workers tail API."""

from __future__ import annotations

import json
import logging
from http.client import HTTPResponse
from typing import Any, cast
from urllib import error, request

from client import __version__
from client.sdk.models import GlobalUser, TailRecord, Target

_DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"

logger = logging.getLogger("client.sdk")


class WorkersAPIError(RuntimeError):
    """Raised when the API rejects a request or cannot be reached."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class WorkersClient:
    """Minimal client for registering, refreshing and removing tails."""

    def __init__(self, *, base_url: str = _DEFAULT_BASE_URL, timeout: float = 30.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def create_tail(self, target: Target, user: GlobalUser, tunnel_url: str) -> TailRecord:
        result = self._json_request(
            "POST", target.tails_path, user, json_body={"url": tunnel_url}
        )
        return TailRecord.from_dict(result)

    def send_heartbeat(self, target: Target, user: GlobalUser, tail_id: str) -> TailRecord:
        result = self._json_request("POST", f"{target.tails_path}/{tail_id}/heartbeat", user)
        return TailRecord.from_dict(result)

    def delete_tail(self, target: Target, user: GlobalUser, tail_id: str) -> None:
        self._json_request("DELETE", f"{target.tails_path}/{tail_id}", user)

    def _json_request(
        self,
        method: str,
        path: str,
        user: GlobalUser,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        with self._open(method, path, user, json_body=json_body) as resp:
            data = resp.read()
        if not data:
            return {}
        envelope = cast(dict[str, Any], json.loads(data.decode()))
        if not envelope.get("success", True):
            raise WorkersAPIError(_describe_errors(envelope), status=resp.status)
        return cast(dict[str, Any], envelope.get("result") or {})

    def _open(
        self,
        method: str,
        path: str,
        user: GlobalUser,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> HTTPResponse:
        url = f"{self._base_url}{path}"
        headers = {
            "User-Agent": f"live-tail/{__version__}",
            "Accept": "application/json",
            **user.auth_headers(),
        }
        data = None
        if json_body is not None:
            data = json.dumps(json_body).encode()
            headers["Content-Type"] = "application/json"
        req = request.Request(url, data=data, headers=headers, method=method)
        logger.debug("api.request", extra={"method": method, "path": path})
        try:
            return cast(HTTPResponse, request.urlopen(req, timeout=self._timeout))  # noqa: S310
        except error.HTTPError as exc:
            body = exc.read().decode(errors="replace")
            message = body or str(exc.reason)
            try:
                message = _describe_errors(json.loads(body))
            except (ValueError, AttributeError):
                pass
            raise WorkersAPIError(f"API error {exc.code}: {message}", status=exc.code) from exc
        except error.URLError as exc:
            raise WorkersAPIError(f"API unreachable: {exc.reason}") from exc


def _describe_errors(envelope: dict[str, Any]) -> str:
    errors = envelope.get("errors") or []
    messages = [str(item.get("message", item)) for item in errors if isinstance(item, dict)]
    return "; ".join(messages) or "request failed"


__all__ = ["WorkersAPIError", "WorkersClient"]
