"""Shared fixtures: a recording logger and a stub upstream behind MockTransport."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config, RateLimitSettings, ServerSettings


class RecordingLogger:
    def __init__(self):
        self.relays: list[dict[str, Any]] = []
        self.rejected: list[tuple[str, str, str]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_relay(self, route, method, target, status, elapsed_ms, *, headers=None):
        self.relays.append(
            {
                "route": route,
                "method": method,
                "target": target,
                "status": status,
                "elapsed_ms": elapsed_ms,
                "headers": headers or {},
            }
        )

    def log_rejected(self, route, code, message):
        self.rejected.append((route, code, message))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))


class StubUpstream:
    """Records every outbound request and answers through handler."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.handler(request)
        if not isinstance(response, httpx.Response):
            response = await response
        return response

    @property
    def call_count(self) -> int:
        return len(self.requests)


def make_config(environment: str = "production", **rate_limit: Any) -> Config:
    rate_limit.setdefault("enabled", False)
    return Config(
        server=ServerSettings(environment=environment),
        rate_limit=RateLimitSettings(**rate_limit),
    )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def relay_client(logger):
    """Factory: (handler, config) -> (TestClient, StubUpstream)."""
    opened: list[TestClient] = []

    def _make(handler, config: Config | None = None):
        stub = StubUpstream(handler)
        app = create_app(config or make_config(), logger, transport=httpx.MockTransport(stub))
        client = TestClient(app, raise_server_exceptions=False)
        client.__enter__()
        opened.append(client)
        return client, stub

    yield _make

    for client in opened:
        client.__exit__(None, None, None)


def json_ok(payload: Any, status: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payload)

    return _handler
