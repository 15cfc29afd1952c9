"""Shared exceptions and logging helpers"""

from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    CancellationError,
    ConfigurationError,
    ConflictError,
    DeadlineExceededError,
    ErrorKind,
    InternalError,
    MidazError,
    MissingParameterError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
    UnprocessableError,
    ValidationError,
)
from .logging import install_logging_bridge, mask_headers

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "CancellationError",
    "ConfigurationError",
    "ConflictError",
    "DeadlineExceededError",
    "ErrorKind",
    "InternalError",
    "MidazError",
    "MissingParameterError",
    "NetworkError",
    "NotFoundError",
    "RateLimitError",
    "RequestTimeoutError",
    "UnprocessableError",
    "ValidationError",
    "install_logging_bridge",
    "mask_headers",
]
