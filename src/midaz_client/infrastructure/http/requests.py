"""RequestExecutor - authenticated HTTP requests with retry logic"""

import os
import time
from functools import lru_cache
from typing import Any

import httpx
from loguru import logger
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError, to_json

from midaz_client.shared.exceptions import (
    InternalError,
    MidazError,
    NetworkError,
    ValidationError,
)
from midaz_client.shared.logging import install_logging_bridge, mask_headers
from midaz_client.version import user_agent as default_user_agent

from .auth import TokenManager
from .context import RequestContext
from .errors import error_from_response
from .observability import (
    AttemptRecord,
    CallRecord,
    RequestObserver,
    notify_attempt,
    notify_complete,
)
from .retry import RetryConfig, RetryPolicy

IDEMPOTENCY_HEADER = "X-Idempotency"

Outcome = httpx.Response | httpx.RequestError


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _is_success(outcome: Outcome) -> bool:
    return (
        isinstance(outcome, httpx.Response)
        and 200 <= outcome.status_code < 300
    )


def _describe(outcome: Outcome) -> str:
    if isinstance(outcome, httpx.Response):
        return f"status {outcome.status_code}"
    return f"{type(outcome).__name__}: {outcome}"


def add_url_params(url: str, params: dict[str, Any] | None) -> str:
    """Merge query parameters into ``url``"""
    if not params:
        return url
    return str(httpx.URL(url).copy_merge_params(params))


class RequestExecutor:
    """Single choke point for outbound ledger API calls

    Responsibilities:
    - Bearer token attachment via TokenManager
    - Idempotency key propagation
    - Retry orchestration via RetryPolicy
    - Response decoding and error classification
    """

    def __init__(
        self,
        token_manager: TokenManager | None = None,
        retry_config: RetryConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        debug: bool | None = None,
        user_agent: str | None = None,
        observer: RequestObserver | None = None,
    ) -> None:
        """Initialize request executor

        Args:
            token_manager: Source of bearer tokens (no auth when omitted)
            retry_config: Retry settings (defaults when omitted)
            http_client: Externally managed client; one is built when omitted
            timeout: Per-attempt timeout in seconds for the built client
            debug: Debug logging; defaults to MIDAZ_DEBUG == "true"
            user_agent: User-Agent header; defaults to MIDAZ_USER_AGENT
            observer: Optional per-attempt/per-call observer
        """
        self._debug = (
            os.getenv("MIDAZ_DEBUG", "").lower() == "true"
            if debug is None
            else debug
        )
        self._policy = RetryPolicy(retry_config)
        self._user_agent = user_agent or default_user_agent()
        self._observer = observer

        install_logging_bridge()

        self._owns_client = http_client is None
        self._http_client = http_client or self._build_http_client(timeout)

        self._token_manager = token_manager or TokenManager()
        if self._token_manager._http_client is None:
            self._token_manager.set_http_client(self._http_client)

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    @property
    def token_manager(self) -> TokenManager:
        return self._token_manager

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client

    def _build_http_client(
        self,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> httpx.AsyncClient:
        """Create an AsyncClient with httpx request/response logging hooks."""
        return httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            event_hooks={
                "request": [self._log_httpx_request],
                "response": [self._log_httpx_response],
            },
        )

    async def _log_httpx_request(self, request: httpx.Request) -> None:
        """Log outbound httpx requests with headers (auth masked)."""
        if not self._debug:
            return
        logger.debug(
            f"HTTPX request: {request.method} {request.url} "
            f"{mask_headers(request.headers)}"
        )

    async def _log_httpx_response(self, response: httpx.Response) -> None:
        """Log httpx response status; bodies are logged by the executor."""
        if not self._debug:
            return
        logger.debug(
            f"HTTPX response: status={response.status_code} url={response.url}"
        )

    def set_http_client(self, client: httpx.AsyncClient) -> None:
        """Set the HTTP client (for testing or external management)"""
        self._http_client = client
        self._owns_client = False
        self._token_manager.set_http_client(client)

    async def aclose(self) -> None:
        """Close the owned HTTP client and drop cached credentials"""
        self._token_manager.close()
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "RequestExecutor":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def send_request(
        self,
        method: str,
        url: str,
        *,
        operation: str | None = None,
        headers: dict[str, str] | None = None,
        body: Any = None,
        target: Any = None,
        ctx: RequestContext | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
    ) -> Any:
        """Send a JSON request and decode the response

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE, HEAD)
            url: Absolute request URL
            operation: Operation name attached to errors (e.g. "CreateAccount")
            headers: Extra headers; may override Content-Type
            body: Pydantic model, dict or list serialized as JSON
            target: Type to decode a 2xx body into (None to ignore the body)
            ctx: Per-call context (cancellation, deadline, idempotency key)
            resource: Resource name attached to 400/404/409/422 errors
            resource_id: Resource identifier attached alongside ``resource``

        Returns:
            Decoded response, or None when there is no target or no body

        Raises:
            MidazError: Classified error after retries are exhausted
        """
        operation = operation or f"{method.upper()} {url}"
        payload: bytes | None = None
        if body is not None:
            try:
                payload = to_json(body, by_alias=True, exclude_none=True)
            except (PydanticSerializationError, TypeError, ValueError) as e:
                raise InternalError(
                    operation, f"failed to marshal request body: {e}"
                ) from e

        return await self._send(
            method.upper(),
            url,
            operation=operation,
            headers=headers,
            payload=payload,
            json_body=payload is not None,
            target=target,
            ctx=ctx,
            resource=resource,
            resource_id=resource_id,
        )

    async def send_raw_request(
        self,
        method: str,
        url: str,
        *,
        operation: str | None = None,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        target: Any = None,
        ctx: RequestContext | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
    ) -> Any:
        """Send a pre-built payload without JSON encoding

        A non-empty body requires an explicit Content-Type header.

        Raises:
            ValidationError: If a body is given without Content-Type
            MidazError: Classified error after retries are exhausted
        """
        operation = operation or f"{method.upper()} {url}"
        if body and not any(
            k.lower() == "content-type" and v.strip()
            for k, v in (headers or {}).items()
        ):
            raise ValidationError(
                operation, "content-type header required for non-empty request body"
            )

        return await self._send(
            method.upper(),
            url,
            operation=operation,
            headers=headers,
            payload=body or None,
            json_body=False,
            target=target,
            ctx=ctx,
            resource=resource,
            resource_id=resource_id,
        )

    def _base_headers(
        self, headers: dict[str, str] | None, json_body: bool
    ) -> httpx.Headers:
        request_headers = httpx.Headers(
            {"Accept": "application/json", "User-Agent": self._user_agent}
        )
        request_headers.update(headers or {})
        if json_body and "Content-Type" not in request_headers:
            request_headers["Content-Type"] = "application/json"
        return request_headers

    @staticmethod
    def _authorize(headers: httpx.Headers, token: str) -> httpx.Headers:
        attempt_headers = headers.copy()
        if token:
            attempt_headers["Authorization"] = (
                token if token.startswith("Bearer ") else f"Bearer {token}"
            )
        return attempt_headers

    async def _send(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        headers: dict[str, str] | None,
        payload: bytes | None,
        json_body: bool,
        target: Any,
        ctx: RequestContext | None,
        resource: str | None,
        resource_id: str | None,
    ) -> Any:
        ctx = ctx or RequestContext()
        debug = self._debug if ctx.debug is None else ctx.debug

        request_headers = self._base_headers(headers, json_body)
        # Same key on every attempt so the server can deduplicate
        if ctx.idempotency_key:
            request_headers[IDEMPOTENCY_HEADER] = ctx.idempotency_key

        if debug:
            logger.debug(f"{operation}: {method} {url}")
            if payload and json_body:
                logger.debug(f"{operation}: request body {payload.decode('utf-8')}")

        start = time.monotonic()
        attempt = 0
        sent = 0
        reauthenticated = False
        outcome: Outcome | None = None

        try:
            while True:
                token = await self._token_manager.ensure_token(ctx)
                attempt_headers = self._authorize(request_headers, token)

                if debug:
                    logger.debug(
                        f"{operation}: attempt {sent + 1} "
                        f"headers={mask_headers(attempt_headers)}"
                    )

                ctx.check(operation)
                sent += 1
                attempt_start = time.monotonic()
                outcome = await self._attempt(
                    method, url, attempt_headers, payload, ctx, operation
                )
                self._record_attempt(
                    operation, method, url, sent, attempt_start, outcome
                )

                if (
                    isinstance(outcome, httpx.Response)
                    and outcome.status_code == 401
                    and self._token_manager.enabled
                    and not reauthenticated
                ):
                    logger.warning(
                        f"{operation}: unauthorized - refreshing access token"
                    )
                    self._token_manager.invalidate(token)
                    reauthenticated = True
                    continue

                if _is_success(outcome):
                    break

                if not self._policy.should_retry(attempt, outcome):
                    break

                delay = self._policy.jittered_delay(attempt)
                logger.warning(
                    f"{operation}: retryable {_describe(outcome)} on attempt "
                    f"{sent}, retrying in {delay:.2f}s"
                )
                await ctx.sleep(delay, operation)
                attempt += 1

        except MidazError as e:
            e.attempts = sent
            self._record_call(operation, method, url, start, e.attempts, None, e)
            raise

        attempts = sent
        try:
            result = self._finish(
                outcome,
                operation=operation,
                target=target,
                debug=debug,
                resource=resource,
                resource_id=resource_id,
            )
        except MidazError as e:
            e.attempts = attempts
            e.retries_exhausted = (
                self._policy.max_retries > 0
                and attempt >= self._policy.max_retries
                and self._policy.is_retryable(outcome)
            )
            if e.retries_exhausted:
                logger.warning(
                    f"{operation}: retries exhausted after {attempts} attempts "
                    f"({_describe(outcome)})"
                )
            status = (
                outcome.status_code if isinstance(outcome, httpx.Response) else None
            )
            self._record_call(operation, method, url, start, attempts, status, e)
            raise

        self._record_call(
            operation, method, url, start, attempts, outcome.status_code, None
        )
        return result

    async def _attempt(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        payload: bytes | None,
        ctx: RequestContext,
        operation: str,
    ) -> Outcome:
        """Issue one fresh request; transport failures are returned, not raised"""
        try:
            return await ctx.run(
                self._http_client.request(
                    method, url, content=payload, headers=headers
                ),
                operation,
            )
        except httpx.RequestError as e:
            return e
        except httpx.InvalidURL as e:
            raise InternalError(operation, f"invalid request URL: {e}") from e

    def _finish(
        self,
        outcome: Outcome,
        *,
        operation: str,
        target: Any,
        debug: bool,
        resource: str | None,
        resource_id: str | None,
    ) -> Any:
        """Turn the final outcome into a decoded result or a classified error"""
        if isinstance(outcome, httpx.RequestError):
            if isinstance(outcome, httpx.TransportError):
                raise NetworkError(
                    operation, f"HTTP request failed: {outcome}"
                ) from outcome
            raise InternalError(
                operation, f"HTTP request failed: {outcome}"
            ) from outcome

        response = outcome
        if debug:
            logger.debug(
                f"{operation}: response status={response.status_code} "
                f"request_id={response.headers.get('X-Request-ID', '')} "
                f"body={response.text}"
            )

        if not _is_success(response):
            error = error_from_response(
                operation, response, resource=resource, resource_id=resource_id
            )
            logger.error(f"{operation}: {error}")
            raise error

        if target is None or not response.content:
            return None

        try:
            return _adapter(target).validate_json(response.content)
        except PydanticValidationError as e:
            raise InternalError(
                operation, f"failed to unmarshal response: {e}"
            ) from e

    def _record_attempt(
        self,
        operation: str,
        method: str,
        url: str,
        sent: int,
        started: float,
        outcome: Outcome,
    ) -> None:
        if self._observer is None:
            return
        is_response = isinstance(outcome, httpx.Response)
        notify_attempt(
            self._observer,
            AttemptRecord(
                operation=operation,
                method=method,
                url=url,
                attempt=sent,
                elapsed=time.monotonic() - started,
                status_code=outcome.status_code if is_response else None,
                error=None if is_response else _describe(outcome),
            ),
        )

    def _record_call(
        self,
        operation: str,
        method: str,
        url: str,
        started: float,
        attempts: int,
        status_code: int | None,
        error: MidazError | None,
    ) -> None:
        if self._observer is None:
            return
        notify_complete(
            self._observer,
            CallRecord(
                operation=operation,
                method=method,
                url=url,
                attempts=attempts,
                elapsed=time.monotonic() - started,
                status_code=status_code,
                error_kind=error.kind.value if error is not None else None,
                retries_exhausted=error.retries_exhausted if error else False,
            ),
        )
