"""Classification of HTTP error responses into MidazError kinds"""

import json

import httpx

from midaz_client.shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InternalError,
    MidazError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    UnprocessableError,
    ValidationError,
)

# status -> (error class, whether resource context applies)
_STATUS_ERRORS: dict[int, tuple[type[MidazError], bool]] = {
    400: (ValidationError, True),
    401: (AuthenticationError, False),
    403: (AuthorizationError, False),
    404: (NotFoundError, True),
    408: (RequestTimeoutError, False),
    409: (ConflictError, True),
    422: (UnprocessableError, True),
    429: (RateLimitError, False),
    503: (NetworkError, False),
    504: (RequestTimeoutError, False),
}


def parse_error_body(status_code: int, body: bytes) -> tuple[str, str | None]:
    """Extract (message, code) from an API error body without assuming keys"""
    if not body:
        return "empty response from server", None

    try:
        parsed = json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace"), None

    if not isinstance(parsed, dict):
        return body.decode("utf-8", errors="replace"), None

    message = (
        parsed.get("message") or parsed.get("error") or parsed.get("title")
    )
    code = parsed.get("code")
    if not message:
        message = f"API error with status code {status_code}"
    return str(message), str(code) if code is not None else None


def error_from_status(
    operation: str,
    status_code: int,
    message: str,
    *,
    code: str | None = None,
    request_id: str | None = None,
    resource: str | None = None,
    resource_id: str | None = None,
) -> MidazError:
    """Map an HTTP status to the matching MidazError subclass"""
    error_cls, with_resource = _STATUS_ERRORS.get(
        status_code, (InternalError, False)
    )
    return error_cls(
        operation,
        message,
        status_code=status_code,
        code=code,
        request_id=request_id,
        resource=resource if with_resource else None,
        resource_id=resource_id if with_resource else None,
    )


def error_from_response(
    operation: str,
    response: httpx.Response,
    *,
    resource: str | None = None,
    resource_id: str | None = None,
) -> MidazError:
    """Classify a non-2xx response"""
    message, code = parse_error_body(response.status_code, response.content)
    return error_from_status(
        operation,
        response.status_code,
        message,
        code=code,
        request_id=response.headers.get("X-Request-ID"),
        resource=resource,
        resource_id=resource_id,
    )
