from __future__ import annotations

import importlib
from pathlib import Path

import pytest
from click.testing import CliRunner

from client.config import TailConfig, load_tail_config
from client.sdk import GlobalUser, Target
from live_tail.errors import AcquisitionError

cli_main = importlib.import_module("client.cli.main")


class DummySession:
    instances: list[DummySession] = []

    def __init__(self, config: TailConfig, error: Exception | None = None) -> None:
        self.config = config
        self.error = error
        self.started_with: tuple[Target, GlobalUser] | None = None
        DummySession.instances.append(self)

    def start(self, target: Target, user: GlobalUser) -> None:
        self.started_with = (target, user)
        if self.error is not None:
            raise self.error


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("LIVE_TAIL_HOME", str(tmp_path))
    for name in (
        "LIVE_TAIL_API_URL",
        "LIVE_TAIL_API_TOKEN",
        "LIVE_TAIL_EMAIL",
        "LIVE_TAIL_API_KEY",
        "LIVE_TAIL_ACCOUNT_ID",
        "LIVE_TAIL_CLOUDFLARED",
    ):
        monkeypatch.delenv(name, raising=False)
    DummySession.instances.clear()
    return tmp_path


def _patch_session(monkeypatch: pytest.MonkeyPatch, error: Exception | None = None) -> None:
    monkeypatch.setattr(
        cli_main.TailSession,
        "from_config",
        classmethod(lambda cls, config: DummySession(config, error)),
    )


def test_tail_starts_session(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_session(monkeypatch)
    monkeypatch.setenv("LIVE_TAIL_API_TOKEN", "env-token")
    runner = CliRunner()
    result = runner.invoke(
        cli_main.app, ["tail", "hello-worker", "--account-id", "acct-9", "--port", "9090"]
    )
    assert result.exit_code == 0, result.output
    session = DummySession.instances[-1]
    assert session.config.log_port == 9090
    assert session.started_with == (
        Target(account_id="acct-9", name="hello-worker"),
        GlobalUser(api_token="env-token"),
    )


def test_tail_requires_account(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_session(monkeypatch)
    monkeypatch.setenv("LIVE_TAIL_API_TOKEN", "env-token")
    result = CliRunner().invoke(cli_main.app, ["tail", "hello-worker"])
    assert result.exit_code == 2
    assert "--account-id" in result.output
    assert DummySession.instances == []


def test_tail_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_session(monkeypatch)
    result = CliRunner().invoke(cli_main.app, ["tail", "hello-worker", "--account-id", "acct-9"])
    assert result.exit_code == 2
    assert "No credentials configured" in result.output


def test_tail_reports_session_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_session(monkeypatch, AcquisitionError("executable not found: cloudflared"))
    monkeypatch.setenv("LIVE_TAIL_API_TOKEN", "env-token")
    result = CliRunner().invoke(cli_main.app, ["tail", "hello-worker", "--account-id", "acct-9"])
    assert result.exit_code == 1
    assert "executable not found: cloudflared" in result.output


def test_configure_persists_settings(isolated_home: Path) -> None:
    result = CliRunner().invoke(
        cli_main.app,
        ["configure", "--api-token", "saved-token", "--account-id", "acct-1"],
    )
    assert result.exit_code == 0, result.output
    assert (isolated_home / "config.toml").exists()
    config = load_tail_config()
    assert config.api_token == "saved-token"
    assert config.account_id == "acct-1"
    assert config.log_port == 8080


def test_verbose_is_a_group_option(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_session(monkeypatch)
    monkeypatch.setenv("LIVE_TAIL_API_TOKEN", "env-token")
    levels: list[bool] = []
    monkeypatch.setattr(cli_main, "_configure_logging", levels.append)
    runner = CliRunner()

    result = runner.invoke(
        cli_main.app, ["--verbose", "tail", "hello-worker", "--account-id", "acct-9"]
    )
    assert result.exit_code == 0, result.output
    assert levels == [True]

    misplaced = runner.invoke(
        cli_main.app, ["tail", "hello-worker", "--account-id", "acct-9", "--verbose"]
    )
    assert misplaced.exit_code == 2
    assert "No such option" in misplaced.output
