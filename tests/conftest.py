"""Shared pytest fixtures."""

from __future__ import annotations

import socket

import pytest

from client.sdk import GlobalUser, Target


@pytest.fixture()
def target() -> Target:
    return Target(account_id="acct-1", name="hello-worker")


@pytest.fixture()
def user() -> GlobalUser:
    return GlobalUser(api_token="token-123")


@pytest.fixture()
def free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])
