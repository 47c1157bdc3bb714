"""Configuration helpers shared across the CLI and the tail session."""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from client.sdk.models import GlobalUser

_CONFIG_FILENAME = "config.toml"
_DEFAULT_API_URL = "https://api.cloudflare.com/client/v4"
_ENV_HOME = "LIVE_TAIL_HOME"
_ENV_API_URL = "LIVE_TAIL_API_URL"
_ENV_TOKEN = "LIVE_TAIL_API_TOKEN"
_ENV_EMAIL = "LIVE_TAIL_EMAIL"
_ENV_KEY = "LIVE_TAIL_API_KEY"
_ENV_ACCOUNT = "LIVE_TAIL_ACCOUNT_ID"
_ENV_CLOUDFLARED = "LIVE_TAIL_CLOUDFLARED"


@dataclass(slots=True)
class TailConfig:
    """Represents persisted tail settings."""

    api_base_url: str = _DEFAULT_API_URL
    api_token: str | None = None
    email: str | None = None
    api_key: str | None = None
    account_id: str | None = None
    cloudflared: str = "cloudflared"
    log_port: int = 8080
    metrics_port: int = 8081
    heartbeat_interval: float = 60.0

    def merged(self, **overrides: Any) -> TailConfig:
        """Return a copy that applies CLI/env overrides; ``None`` keeps the current value."""

        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def user(self) -> GlobalUser:
        """Build the API credentials; raises ``ValueError`` when none are configured."""

        return GlobalUser(api_token=self.api_token, email=self.email, api_key=self.api_key)


def _config_dir(create: bool = False) -> Path:
    custom = os.environ.get(_ENV_HOME)
    base = Path(custom) if custom else Path.home() / ".live-tail"
    if create:
        base.mkdir(parents=True, exist_ok=True)
    return base


def config_path() -> Path:
    """Return the path to the persisted configuration."""

    return _config_dir(create=False) / _CONFIG_FILENAME


def load_tail_config() -> TailConfig:
    """Load configuration from disk + environment overrides."""

    data: dict[str, Any] = {}
    path = config_path()
    if path.exists():
        data = tomllib.loads(path.read_text())

    defaults = TailConfig()
    config = TailConfig(
        api_base_url=str(data.get("api_base_url", defaults.api_base_url)),
        api_token=data.get("api_token") or None,
        email=data.get("email") or None,
        api_key=data.get("api_key") or None,
        account_id=data.get("account_id") or None,
        cloudflared=str(data.get("cloudflared", defaults.cloudflared)),
        log_port=int(data.get("log_port", defaults.log_port)),
        metrics_port=int(data.get("metrics_port", defaults.metrics_port)),
        heartbeat_interval=float(data.get("heartbeat_interval", defaults.heartbeat_interval)),
    )

    return config.merged(
        api_base_url=os.environ.get(_ENV_API_URL),
        api_token=os.environ.get(_ENV_TOKEN),
        email=os.environ.get(_ENV_EMAIL),
        api_key=os.environ.get(_ENV_KEY),
        account_id=os.environ.get(_ENV_ACCOUNT),
        cloudflared=os.environ.get(_ENV_CLOUDFLARED),
    )


def save_tail_config(config: TailConfig) -> Path:
    """Persist configuration to ~/.live-tail/config.toml."""

    base = _config_dir(create=True)
    path = base / _CONFIG_FILENAME
    lines = [
        f"api_base_url = {json.dumps(config.api_base_url)}",
        f"api_token = {json.dumps(config.api_token or '')}",
        f"email = {json.dumps(config.email or '')}",
        f"api_key = {json.dumps(config.api_key or '')}",
        f"account_id = {json.dumps(config.account_id or '')}",
        f"cloudflared = {json.dumps(config.cloudflared)}",
        f"log_port = {config.log_port}",
        f"metrics_port = {config.metrics_port}",
        f"heartbeat_interval = {config.heartbeat_interval}",
        "",
    ]
    path.write_text("\n".join(lines), encoding="utf-8")
    return path
