"""TokenManager - plugin (access manager) authentication with token caching"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
from loguru import logger

from midaz_client.shared.exceptions import (
    AuthenticationError,
    CancellationError,
    ConfigurationError,
)

from .context import RequestContext

TOKEN_PATH = "/v1/login/oauth/access_token"
OPERATION = "EnsureToken"


@dataclass(frozen=True)
class AccessManagerConfig:
    """Plugin authentication settings

    Raises:
        ConfigurationError: If enabled without address, client ID or secret
    """

    enabled: bool = False
    address: str = ""
    client_id: str = field(default="", repr=False)
    client_secret: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        if not self.enabled:
            return

        required = {
            "address": self.address,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ConfigurationError(
                f"Missing access manager configuration: {missing}"
            )

    @property
    def token_url(self) -> str:
        return f"{self.address.rstrip('/')}{TOKEN_PATH}"


@dataclass
class CachedToken:
    """Token returned by the access manager"""

    access_token: str = field(repr=False)
    token_type: str = "Bearer"
    refresh_token: str | None = field(default=None, repr=False)
    expires_at: datetime | None = None

    def is_expiring(self, margin_seconds: float = 60.0) -> bool:
        """Check if the token is within ``margin_seconds`` of expiry

        Tokens without a known expiry never expire on their own; they are
        dropped through TokenManager.invalidate() after a 401.
        """
        if self.expires_at is None:
            return False
        now = datetime.now(timezone.utc)
        return self.expires_at - timedelta(seconds=margin_seconds) <= now


def _parse_expires_at(value: Any) -> datetime | None:
    """Parse an RFC 3339 expiry into an aware datetime"""
    if not value:
        return None
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _first(payload: dict, *keys: str) -> Any:
    for key in keys:
        if payload.get(key):
            return payload[key]
    return None


class TokenManager:
    """Produces bearer tokens for outgoing requests

    Responsibilities:
    - Static token passthrough when plugin auth is disabled
    - Token caching with a refresh margin before expiry
    - Single-flight refresh: concurrent callers share one token request
    """

    def __init__(
        self,
        config: AccessManagerConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        static_token: str = "",
        refresh_margin: float = 60.0,
    ) -> None:
        """Initialize token manager

        Args:
            config: Access manager configuration (validated on construction)
            http_client: Client used for the token request
            static_token: Token used when plugin auth is disabled
            refresh_margin: Seconds before expiry at which a token is renewed
        """
        self._config = config or AccessManagerConfig()
        self._http_client = http_client
        self._static_token = static_token or ""
        self._refresh_margin = refresh_margin

        self._token: CachedToken | None = None
        self._refresh_task: asyncio.Task[str] | None = None

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def cached_token(self) -> CachedToken | None:
        return self._token

    @property
    def has_valid_token(self) -> bool:
        token = self._token
        return token is not None and not token.is_expiring(self._refresh_margin)

    def set_http_client(self, client: httpx.AsyncClient) -> None:
        """Set the HTTP client (for testing or external management)"""
        self._http_client = client

    async def ensure_token(self, ctx: RequestContext | None = None) -> str:
        """Return a valid access token, refreshing it if needed

        Args:
            ctx: Caller context; cancelling it abandons the wait but not the
                refresh shared with other callers

        Returns:
            Access token string ("" when no auth is configured)

        Raises:
            AuthenticationError: If the token request fails
            CancellationError: If the context is cancelled while waiting
        """
        if not self._config.enabled:
            return self._static_token

        token = self._token
        if token is not None and not token.is_expiring(self._refresh_margin):
            return token.access_token

        if self._refresh_task is None:
            logger.info("Requesting access token from access manager...")
            self._refresh_task = asyncio.ensure_future(self._refresh())
            self._refresh_task.add_done_callback(self._clear_refresh_task)

        refresh = self._refresh_task
        shared = asyncio.shield(refresh)
        try:
            if ctx is None:
                return await shared
            return await ctx.run(shared, OPERATION)
        except asyncio.CancelledError:
            # close() aborted the shared refresh; this caller was not cancelled
            if refresh.cancelled():
                raise CancellationError(
                    OPERATION, "token refresh aborted: token manager closed"
                ) from None
            raise

    def invalidate(self, stale_token: str | None = None) -> None:
        """Drop the cached token so the next call fetches a new one

        Args:
            stale_token: Token the server rejected. The cache is only dropped
                while it still holds this token, so a token another caller
                already refreshed survives late 401s.
        """
        token = self._token
        if token is None:
            return
        if stale_token is not None and token.access_token != stale_token:
            logger.debug("Rejected access token already replaced, keeping cache")
            return
        logger.debug("Invalidating cached access token")
        self._token = None

    def close(self) -> None:
        """Discard cached credentials"""
        self._token = None
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = None

    def _clear_refresh_task(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # Retrieve the exception so asyncio does not log it as unhandled
        # when every waiter has already gone away.
        if not task.cancelled():
            task.exception()

    async def _refresh(self) -> str:
        token = await self._request_token()
        self._token = token
        if token.expires_at is not None:
            logger.info(f"Access token acquired, expires at {token.expires_at}")
        else:
            logger.info("Access token acquired (no expiry reported)")
        return token.access_token

    async def _request_token(self) -> CachedToken:
        """POST client credentials to the access manager

        Raises:
            AuthenticationError: On transport failure, non-200 status or bad payload
        """
        if self._http_client is None:
            raise AuthenticationError(OPERATION, "HTTP client not initialized")

        payload = {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

        try:
            response = await self._http_client.post(
                self._config.token_url, json=payload, headers=headers
            )
        except httpx.HTTPError as e:
            logger.warning(f"Access manager unreachable: {e}")
            raise AuthenticationError(
                OPERATION, f"failed to connect to access manager: {e}"
            ) from e

        if response.status_code != 200:
            raise self._auth_failure(response)

        try:
            body = response.json()
        except ValueError as e:
            raise AuthenticationError(
                OPERATION, "failed to parse access manager response"
            ) from e
        if not isinstance(body, dict):
            raise AuthenticationError(
                OPERATION, "unexpected access manager response shape"
            )

        access_token = _first(body, "accessToken", "access_token")
        if not access_token:
            raise AuthenticationError(
                OPERATION, "access manager returned empty token"
            )

        try:
            expires_at = _parse_expires_at(_first(body, "expiresAt", "expires_at"))
        except ValueError as e:
            raise AuthenticationError(
                OPERATION, f"invalid token expiry: {e}"
            ) from e

        return CachedToken(
            access_token=access_token,
            token_type=_first(body, "tokenType", "token_type") or "Bearer",
            refresh_token=_first(body, "refreshToken", "refresh_token"),
            expires_at=expires_at,
        )

    def _auth_failure(self, response: httpx.Response) -> AuthenticationError:
        """Build an AuthenticationError from a failed token response"""
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or body.get("title")
        else:
            message = None
        if not message:
            message = (
                f"access manager returned non-OK status: {response.status_code}"
            )

        logger.warning(
            f"Access token request failed ({response.status_code}): "
            f"{code or ''} {message}"
        )
        return AuthenticationError(
            OPERATION,
            message,
            status_code=response.status_code,
            code=code,
        )
