from __future__ import annotations

import io

import pytest
from fastapi.testclient import TestClient

from live_tail.api import LogManager, create_app
from live_tail.api.context import AppContext


@pytest.fixture()
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def context(output: io.StringIO) -> AppContext:
    return AppContext(log_manager=LogManager(output=output))


@pytest.fixture()
def client(context: AppContext):
    with TestClient(create_app(context)) as test_client:
        yield test_client
