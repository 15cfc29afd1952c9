"""Consolidated exceptions for the Midaz client.

Every error surfaced to callers is a ``MidazError`` subclass tagged with an
``ErrorKind``, so callers can branch either on the class or on ``err.kind``
without parsing HTTP status codes themselves.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Tag identifying the category of a ``MidazError``"""

    MISSING_PARAMETER = "missing_parameter"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    UNPROCESSABLE = "unprocessable"
    NETWORK = "network"
    INTERNAL = "internal"
    CANCELLATION = "cancellation"
    CONFIGURATION = "configuration"


class MidazError(Exception):
    """Base exception for Midaz client errors"""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        status_code: int | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        request_id: str | None = None,
        code: str | None = None,
    ) -> None:
        self.operation = operation
        self.message = message
        self.status_code = status_code
        self.resource = resource
        self.resource_id = resource_id
        self.request_id = request_id
        self.code = code
        self.attempts = 0
        self.retries_exhausted = False
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.resource:
            subject = f"{self.kind.value} error for {self.resource}"
            if self.resource_id:
                subject = f"{subject} {self.resource_id}"
        else:
            subject = f"{self.kind.value} error"

        if self.operation:
            return f"{subject} during {self.operation}: {self.message}"
        return f"{subject}: {self.message}"


class MissingParameterError(MidazError):
    """Raised when a required identifier or input is empty"""

    kind = ErrorKind.MISSING_PARAMETER

    def __init__(self, operation: str, parameter: str) -> None:
        self.parameter = parameter
        super().__init__(
            operation,
            f"missing required parameter: {parameter}",
            status_code=400,
        )


class ValidationError(MidazError):
    """Raised when input is structurally invalid"""

    kind = ErrorKind.VALIDATION


class NotFoundError(MidazError):
    """Raised when the server responds 404 or a lookup finds nothing"""

    kind = ErrorKind.NOT_FOUND


class AuthenticationError(MidazError):
    """Raised when token acquisition fails or the server responds 401"""

    kind = ErrorKind.AUTHENTICATION


class AuthorizationError(MidazError):
    """Raised when the server responds 403"""

    kind = ErrorKind.AUTHORIZATION


class ConflictError(MidazError):
    """Raised when the server responds 409"""

    kind = ErrorKind.CONFLICT


class RateLimitError(MidazError):
    """Raised when the server responds 429"""

    kind = ErrorKind.RATE_LIMIT


class RequestTimeoutError(MidazError):
    """Raised when the server reports a timeout (408/504)"""

    kind = ErrorKind.TIMEOUT


class UnprocessableError(MidazError):
    """Raised when the server responds 422"""

    kind = ErrorKind.UNPROCESSABLE


class NetworkError(MidazError):
    """Raised on transport-level failures (DNS, connection reset, timeout)"""

    kind = ErrorKind.NETWORK


class InternalError(MidazError):
    """Raised on unexpected local failures or unmapped server errors"""

    kind = ErrorKind.INTERNAL


class CancellationError(MidazError):
    """Raised when the caller cancels a call or its deadline passes"""

    kind = ErrorKind.CANCELLATION


class DeadlineExceededError(CancellationError):
    """Raised when a call's overall deadline passes"""

    pass


class ConfigurationError(MidazError):
    """Raised when client configuration is invalid or missing"""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, operation: str = "") -> None:
        super().__init__(operation, message)
