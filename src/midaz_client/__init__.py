"""Async client for the Midaz ledger API"""

from .client import MidazClient
from .core import Config
from .infrastructure.http import (
    AccessManagerConfig,
    MetricsCollector,
    RequestContext,
    RequestExecutor,
    RetryConfig,
    TokenManager,
)
from .shared.exceptions import ErrorKind, MidazError
from .version import __version__

__all__ = [
    "AccessManagerConfig",
    "Config",
    "ErrorKind",
    "MetricsCollector",
    "MidazClient",
    "MidazError",
    "RequestContext",
    "RequestExecutor",
    "RetryConfig",
    "TokenManager",
    "__version__",
]
