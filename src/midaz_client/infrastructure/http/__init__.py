"""HTTP transport module

RetryPolicy - Retry decisions and exponential backoff
TokenManager - Access manager token caching and single-flight refresh
RequestExecutor - Authenticated HTTP requests with retry logic
RequestContext - Per-call cancellation, deadline and idempotency key
"""

from .auth import AccessManagerConfig, CachedToken, TokenManager
from .context import RequestContext
from .errors import error_from_response, error_from_status
from .observability import (
    AttemptRecord,
    CallRecord,
    MetricsCollector,
    RequestObserver,
)
from .requests import IDEMPOTENCY_HEADER, RequestExecutor, add_url_params
from .retry import (
    RetryConfig,
    RetryPolicy,
    is_retryable_transport_error,
    with_backoff_factor,
    with_initial_delay,
    with_jitter,
    with_max_delay,
    with_max_retries,
    with_retryable_predicate,
    with_retryable_status_codes,
)

__all__ = [
    "AccessManagerConfig",
    "AttemptRecord",
    "CachedToken",
    "CallRecord",
    "IDEMPOTENCY_HEADER",
    "MetricsCollector",
    "RequestContext",
    "RequestExecutor",
    "RequestObserver",
    "RetryConfig",
    "RetryPolicy",
    "TokenManager",
    "add_url_params",
    "error_from_response",
    "error_from_status",
    "is_retryable_transport_error",
    "with_backoff_factor",
    "with_initial_delay",
    "with_jitter",
    "with_max_delay",
    "with_max_retries",
    "with_retryable_predicate",
    "with_retryable_status_codes",
]
