"""Tests for TokenManager and AccessManagerConfig in isolation"""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from freezegun import freeze_time

from midaz_client.infrastructure.http import (
    AccessManagerConfig,
    CachedToken,
    RequestContext,
    TokenManager,
)
from midaz_client.shared.exceptions import (
    AuthenticationError,
    CancellationError,
    ConfigurationError,
)
from tests.factories import TOKEN_URL, MockServer, json_response, token_response


def _manager(server: MockServer, config: AccessManagerConfig, **kwargs):
    client = httpx.AsyncClient(transport=server.transport())
    return TokenManager(config=config, http_client=client, **kwargs)


@pytest.mark.unit
def test_access_manager_config_disabled_needs_nothing():
    """Test a disabled config is valid without credentials"""
    config = AccessManagerConfig()

    assert config.enabled is False


@pytest.mark.unit
def test_access_manager_config_missing_fields():
    """Test enabling plugin auth without credentials fails at construction"""
    with pytest.raises(ConfigurationError) as exc_info:
        AccessManagerConfig(enabled=True, address="http://auth.test")

    assert "client_id" in str(exc_info.value)
    assert "client_secret" in str(exc_info.value)


@pytest.mark.unit
def test_access_manager_config_hides_secrets():
    """Test credentials are kept out of repr"""
    config = AccessManagerConfig(
        enabled=True,
        address="http://auth.test/",
        client_id="the-id",
        client_secret="the-secret",
    )

    assert "the-secret" not in repr(config)
    assert "the-id" not in repr(config)
    assert config.token_url == TOKEN_URL


@pytest.mark.unit
def test_cached_token_without_expiry_never_expires():
    """Test tokens with no reported expiry are not refreshed on a timer"""
    assert CachedToken(access_token="t").is_expiring() is False


@pytest.mark.unit
def test_cached_token_refresh_margin():
    """Test the token counts as expiring inside the refresh margin"""
    with freeze_time("2026-03-01 12:00:00"):
        expires_at = datetime(2026, 3, 1, 12, 5, tzinfo=timezone.utc)
        token = CachedToken(access_token="t", expires_at=expires_at)

        assert token.is_expiring(60) is False

    with freeze_time("2026-03-01 12:04:00"):
        assert token.is_expiring(60) is True

    with freeze_time("2026-03-01 12:06:00"):
        assert token.is_expiring(0) is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_disabled_returns_static_token_without_network():
    """Test plugin auth disabled never calls the access manager"""
    server = MockServer(token_response())
    manager = _manager(server, AccessManagerConfig(), static_token="static")

    assert await manager.ensure_token() == "static"
    assert server.calls == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_disabled_without_token_returns_empty():
    """Test no auth configured yields an empty token"""
    manager = TokenManager()

    assert await manager.ensure_token() == ""


@pytest.mark.unit
@pytest.mark.asyncio
async def test_token_request_payload(access_manager_config):
    """Test the token request posts client credentials as JSON"""
    server = MockServer(token_response("abc"))
    manager = _manager(server, access_manager_config)

    assert await manager.ensure_token() == "abc"

    request = server.requests[0]
    assert request.method == "POST"
    assert str(request.url) == TOKEN_URL
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {
        "client_id": "client-id",
        "client_secret": "client-secret",
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_token_is_cached(access_manager_config):
    """Test a valid token is reused without another request"""
    expires_at = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
    server = MockServer(token_response("abc", expires_at))
    manager = _manager(server, access_manager_config)

    await manager.ensure_token()
    await manager.ensure_token()

    assert server.calls == 1
    assert manager.has_valid_token is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_expiring_token_is_refreshed(access_manager_config):
    """Test a token inside the refresh margin triggers a new request"""
    soon = (datetime.now(timezone.utc) + timedelta(seconds=30)).isoformat()
    later = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
    server = MockServer(token_response("first", soon), token_response("second", later))
    manager = _manager(server, access_manager_config)

    assert await manager.ensure_token() == "first"
    assert await manager.ensure_token() == "second"
    assert server.calls == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_snake_case_token_response(access_manager_config):
    """Test snake_case token fields are accepted"""
    server = MockServer(
        json_response(
            200,
            {"access_token": "snake", "expires_at": "2099-01-01T00:00:00Z"},
        )
    )
    manager = _manager(server, access_manager_config)

    assert await manager.ensure_token() == "snake"
    assert manager.cached_token.expires_at == datetime(2099, 1, 1, tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_flight_refresh(access_manager_config):
    """Test concurrent callers share one token request"""

    async def slow_token(request):
        await asyncio.sleep(0.02)
        return token_response("shared")

    server = MockServer(slow_token)
    manager = _manager(server, access_manager_config)

    tokens = await asyncio.gather(*(manager.ensure_token() for _ in range(10)))

    assert tokens == ["shared"] * 10
    assert server.calls == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_refresh_failure_reaches_all_waiters(access_manager_config):
    """Test every concurrent caller sees the same failure"""
    server = MockServer(json_response(500, {"message": "down"}))
    manager = _manager(server, access_manager_config)

    results = await asyncio.gather(
        *(manager.ensure_token() for _ in range(3)), return_exceptions=True
    )

    assert all(isinstance(r, AuthenticationError) for r in results)
    assert server.calls == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failed_refresh_is_retried_by_next_call(access_manager_config):
    """Test a failure is not cached"""
    server = MockServer(
        json_response(503, {"message": "down"}), token_response("recovered")
    )
    manager = _manager(server, access_manager_config)

    with pytest.raises(AuthenticationError):
        await manager.ensure_token()

    assert await manager.ensure_token() == "recovered"
    assert server.calls == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_auth_failure_body_is_surfaced(access_manager_config):
    """Test the access manager's code and message end up on the error"""
    server = MockServer(
        json_response(401, {"code": "AUT-0004", "message": "invalid client"})
    )
    manager = _manager(server, access_manager_config)

    with pytest.raises(AuthenticationError) as exc_info:
        await manager.ensure_token()

    error = exc_info.value
    assert error.status_code == 401
    assert error.code == "AUT-0004"
    assert error.message == "invalid client"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_auth_failure_without_body(access_manager_config):
    """Test a bare failure status yields a generic message"""
    server = MockServer(httpx.Response(502))
    manager = _manager(server, access_manager_config)

    with pytest.raises(AuthenticationError, match="non-OK status: 502"):
        await manager.ensure_token()


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reply",
    [
        json_response(200, {"accessToken": ""}),
        json_response(200, ["not", "an", "object"]),
        httpx.Response(200, content=b"not json"),
        json_response(200, {"accessToken": "t", "expiresAt": "tomorrow"}),
    ],
)
async def test_bad_token_payload(access_manager_config, reply):
    """Test malformed success responses are authentication errors"""
    manager = _manager(MockServer(reply), access_manager_config)

    with pytest.raises(AuthenticationError):
        await manager.ensure_token()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unreachable_access_manager(access_manager_config):
    """Test transport failures are wrapped in AuthenticationError"""
    request = httpx.Request("POST", TOKEN_URL)
    server = MockServer(httpx.ConnectError("refused", request=request))
    manager = _manager(server, access_manager_config)

    with pytest.raises(AuthenticationError, match="failed to connect") as exc_info:
        await manager.ensure_token()

    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalidate_forces_new_token(access_manager_config):
    """Test invalidate drops the cached token"""
    server = MockServer(token_response("first"), token_response("second"))
    manager = _manager(server, access_manager_config)

    assert await manager.ensure_token() == "first"
    manager.invalidate()

    assert manager.has_valid_token is False
    assert await manager.ensure_token() == "second"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_abort_shared_refresh(
    access_manager_config,
):
    """Test one caller giving up leaves the refresh running for others"""

    async def slow_token(request):
        await asyncio.sleep(0.05)
        return token_response("shared")

    server = MockServer(slow_token)
    manager = _manager(server, access_manager_config)
    ctx = RequestContext()
    asyncio.get_running_loop().call_later(0.01, ctx.cancel)

    impatient, patient = await asyncio.gather(
        manager.ensure_token(ctx),
        manager.ensure_token(),
        return_exceptions=True,
    )

    assert isinstance(impatient, CancellationError)
    assert patient == "shared"
    assert server.calls == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_single_flight_refresh_of_expired_token(access_manager_config):
    """Test callers racing an expired cached token share one token request"""

    async def slow_token(request):
        await asyncio.sleep(0.02)
        return token_response("renewed", "2099-01-01T00:00:00Z")

    server = MockServer(token_response("expired", "2000-01-01T00:00:00Z"), slow_token)
    manager = _manager(server, access_manager_config)
    assert await manager.ensure_token() == "expired"
    assert manager.has_valid_token is False

    tokens = await asyncio.gather(*(manager.ensure_token() for _ in range(10)))

    assert tokens == ["renewed"] * 10
    assert server.calls == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalidate_keeps_token_already_replaced(access_manager_config):
    """Test invalidate with a rejected token only drops that token"""
    server = MockServer(token_response("current"))
    manager = _manager(server, access_manager_config)
    await manager.ensure_token()

    manager.invalidate("previous")
    assert manager.has_valid_token is True

    manager.invalidate("current")
    assert manager.has_valid_token is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_aborts_pending_waiters_with_cancellation_error(
    access_manager_config,
):
    """Test close() during a refresh fails waiters with CancellationError"""

    async def slow_token(request):
        await asyncio.sleep(5)
        return token_response("late")

    server = MockServer(slow_token)
    manager = _manager(server, access_manager_config)
    waiters = asyncio.gather(
        manager.ensure_token(),
        manager.ensure_token(RequestContext()),
        return_exceptions=True,
    )
    await asyncio.sleep(0.01)

    manager.close()
    results = await waiters

    assert all(isinstance(r, CancellationError) for r in results)
    assert all("closed" in str(r) for r in results)
    assert manager.cached_token is None
