"""
Tests unitarios para UpstreamSessionManager.

Verifica:
- reutilizacion del token hasta `login + TTL - margen`
- TTL por defecto cuando `expiresIn` es invalido
- reset de la cache ante fallos de login
- login single-flight con llamadas concurrentes
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from catalog_bff.infrastructure.external.upstream_catalog.session_manager import (
    UpstreamSessionManager,
    coerce_ttl_seconds,
)
from catalog_bff.infrastructure.external.upstream_catalog.types import EPOCH, UpstreamCredentials
from catalog_bff.shared.exceptions.sync import UpstreamAuthError


T0 = datetime(2025, 3, 1, 8, 0, 0, tzinfo=timezone.utc)
CREDS = UpstreamCredentials(username="api-user", password="s3cret")


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class LoginServer:
    """Handler de httpx.MockTransport que cuenta logins."""

    def __init__(self, status_code: int = 200, body=None, delay: float = 0.0) -> None:
        self.status_code = status_code
        self.body = body
        self.delay = delay
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.body is not None:
            if isinstance(self.body, str):
                return httpx.Response(self.status_code, text=self.body)
            return httpx.Response(self.status_code, json=self.body)
        return httpx.Response(
            self.status_code,
            json={"token": f"tok-{len(self.requests)}", "expiresIn": 3600},
        )

    @property
    def calls(self) -> int:
        return len(self.requests)


def _manager(server, clock: FakeClock) -> UpstreamSessionManager:
    client = httpx.AsyncClient(transport=httpx.MockTransport(server), base_url="http://upstream.test")
    return UpstreamSessionManager(CREDS, client=client, clock=clock)


@pytest.mark.asyncio
async def test_login_sends_credentials_as_query_params() -> None:
    server = LoginServer()
    manager = _manager(server, FakeClock(T0))

    token = await manager.get_valid_token()

    assert token == "tok-1"
    request = server.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/autentificar"
    assert request.url.params["name"] == "api-user"
    assert request.url.params["password"] == "s3cret"


@pytest.mark.asyncio
async def test_token_reused_until_ttl_minus_margin() -> None:
    server = LoginServer()
    clock = FakeClock(T0)
    manager = _manager(server, clock)

    assert await manager.get_valid_token() == "tok-1"
    assert manager.session.expires_at == T0 + timedelta(seconds=3540)

    clock.advance(3539)
    assert await manager.get_valid_token() == "tok-1"
    assert server.calls == 1

    # En T + 3540s el token ya no es valido
    clock.advance(1)
    assert await manager.get_valid_token() == "tok-2"
    assert server.calls == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("expires_in", [None, "abc", 0, -10])
async def test_invalid_ttl_falls_back_to_default(expires_in) -> None:
    body = {"token": "tok"}
    if expires_in is not None:
        body["expiresIn"] = expires_in
    server = LoginServer(body=body)
    manager = _manager(server, FakeClock(T0))

    await manager.get_valid_token()

    assert manager.session.expires_at == T0 + timedelta(seconds=3600 - 60)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code, body",
    [
        (500, {"error": "boom"}),
        (401, {"error": "bad credentials"}),
        (200, {"expiresIn": 3600}),
        (200, "<html>not json</html>"),
    ],
)
async def test_login_failure_resets_session(status_code, body) -> None:
    server = LoginServer(status_code=status_code, body=body)
    manager = _manager(server, FakeClock(T0))

    with pytest.raises(UpstreamAuthError):
        await manager.get_valid_token()

    assert manager.session.token is None
    assert manager.session.expires_at == EPOCH


@pytest.mark.asyncio
async def test_transport_error_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    manager = _manager(handler, FakeClock(T0))

    with pytest.raises(UpstreamAuthError):
        await manager.get_valid_token()
    assert manager.is_valid() is False


@pytest.mark.asyncio
async def test_failure_after_valid_session_invalidates_cache() -> None:
    server = LoginServer()
    clock = FakeClock(T0)
    manager = _manager(server, clock)
    await manager.get_valid_token()

    server.status_code = 503
    server.body = {"error": "down"}
    clock.advance(3600)

    with pytest.raises(UpstreamAuthError):
        await manager.get_valid_token()
    assert manager.session.token is None


@pytest.mark.asyncio
async def test_concurrent_callers_share_single_login() -> None:
    server = LoginServer(delay=0.05)
    manager = _manager(server, FakeClock(T0))

    tokens = await asyncio.gather(*(manager.get_valid_token() for _ in range(10)))

    assert server.calls == 1
    assert set(tokens) == {"tok-1"}


@pytest.mark.asyncio
async def test_concurrent_callers_share_login_failure() -> None:
    server = LoginServer(status_code=500, body={"error": "boom"}, delay=0.05)
    manager = _manager(server, FakeClock(T0))

    results = await asyncio.gather(
        *(manager.get_valid_token() for _ in range(5)),
        return_exceptions=True,
    )

    assert server.calls == 1
    assert all(isinstance(r, UpstreamAuthError) for r in results)


@pytest.mark.asyncio
async def test_invalidate_forces_new_login() -> None:
    server = LoginServer()
    manager = _manager(server, FakeClock(T0))

    await manager.get_valid_token()
    manager.invalidate()
    token = await manager.get_valid_token()

    assert token == "tok-2"
    assert server.calls == 2


def test_coerce_ttl_seconds() -> None:
    assert coerce_ttl_seconds(3600) == 3600.0
    assert coerce_ttl_seconds("120") == 120.0
    assert coerce_ttl_seconds(True) is None
    assert coerce_ttl_seconds(None) is None
    assert coerce_ttl_seconds(0) is None
    assert coerce_ttl_seconds("soon") is None


@pytest.mark.asyncio
async def test_finished_failed_login_is_not_reused() -> None:
    server = LoginServer()
    manager = _manager(server, FakeClock(T0))

    # Login fallido ya terminado cuyo callback de limpieza aun no ha corrido
    stale = asyncio.get_running_loop().create_future()
    stale.set_exception(UpstreamAuthError("login anterior fallido"))
    stale.exception()
    manager._inflight = stale

    token = await manager.get_valid_token()

    assert token == "tok-1"
    assert server.calls == 1
