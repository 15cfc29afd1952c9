"""RetryConfig and RetryPolicy - retry decisions and exponential backoff"""

import os
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

import httpx
from loguru import logger

from midaz_client.shared.exceptions import (
    CancellationError,
    ConfigurationError,
)

DEFAULT_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

DEFAULT_RETRYABLE_ERROR_FRAGMENTS = (
    "connection reset by peer",
    "connection refused",
    "timeout",
    "timed out",
    "deadline exceeded",
    "too many requests",
    "rate limit",
    "service unavailable",
)


def is_retryable_transport_error(error: BaseException) -> bool:
    """Default predicate: network-level failures worth another attempt"""
    if isinstance(error, (CancellationError, httpx.UnsupportedProtocol)):
        return False
    if isinstance(error, httpx.TransportError):
        return True
    message = str(error).lower()
    return any(fragment in message for fragment in DEFAULT_RETRYABLE_ERROR_FRAGMENTS)


RetryOption = Callable[["RetryConfig"], "RetryConfig"]


@dataclass(frozen=True)
class RetryConfig:
    """Immutable retry configuration

    Delays are expressed in seconds.
    """

    max_retries: int = 3
    initial_delay: float = 0.1
    max_delay: float = 10.0
    backoff_factor: float = 2.0
    jitter: bool = True
    retryable_status_codes: frozenset[int] = DEFAULT_RETRYABLE_STATUS_CODES
    retryable_predicate: Callable[[BaseException], bool] = field(
        default=is_retryable_transport_error, compare=False
    )

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ConfigurationError(
                f"max_retries must be non-negative, got {self.max_retries}"
            )
        if self.initial_delay <= 0:
            raise ConfigurationError(
                f"initial_delay must be positive, got {self.initial_delay}"
            )
        if self.max_delay < self.initial_delay:
            raise ConfigurationError(
                f"max_delay ({self.max_delay}) must be >= initial_delay "
                f"({self.initial_delay})"
            )
        if self.backoff_factor < 1.0:
            raise ConfigurationError(
                f"backoff_factor must be at least 1.0, got {self.backoff_factor}"
            )
        # Accept any iterable of codes but store an immutable set
        object.__setattr__(
            self, "retryable_status_codes", frozenset(self.retryable_status_codes)
        )

    @classmethod
    def build(cls, *options: RetryOption) -> "RetryConfig":
        """Fold option helpers over the default configuration

        Example:
            RetryConfig.build(with_max_retries(5), with_initial_delay(0.2))
        """
        config = cls()
        for option in options:
            config = option(config)
        return config

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        """Single attempt, no retries"""
        return cls(max_retries=0)

    @classmethod
    def high_reliability(cls) -> "RetryConfig":
        """More attempts and longer backoff for critical operations"""
        return cls(
            max_retries=5,
            initial_delay=0.2,
            max_delay=30.0,
            backoff_factor=2.5,
        )

    @classmethod
    def from_env(cls) -> "RetryConfig":
        """Load retry settings from MIDAZ_MAX_RETRIES / MIDAZ_ENABLE_RETRIES

        Raises:
            ConfigurationError: If MIDAZ_MAX_RETRIES is not a non-negative integer
        """
        config = cls()

        max_retries = os.getenv("MIDAZ_MAX_RETRIES")
        if max_retries:
            try:
                value = int(max_retries)
            except ValueError as e:
                raise ConfigurationError(
                    f"MIDAZ_MAX_RETRIES must be an integer, got {max_retries!r}"
                ) from e
            config = with_max_retries(value)(config)

        if os.getenv("MIDAZ_ENABLE_RETRIES", "").lower() == "false":
            logger.debug("Retries disabled via MIDAZ_ENABLE_RETRIES")
            config = with_max_retries(0)(config)

        return config


def with_max_retries(max_retries: int) -> RetryOption:
    return lambda config: replace(config, max_retries=max_retries)


def with_initial_delay(delay: float) -> RetryOption:
    return lambda config: replace(
        config, initial_delay=delay, max_delay=max(config.max_delay, delay)
    )


def with_max_delay(delay: float) -> RetryOption:
    return lambda config: replace(config, max_delay=delay)


def with_backoff_factor(factor: float) -> RetryOption:
    return lambda config: replace(config, backoff_factor=factor)


def with_jitter(enabled: bool) -> RetryOption:
    return lambda config: replace(config, jitter=enabled)


def with_retryable_status_codes(codes: Iterable[int]) -> RetryOption:
    return lambda config: replace(
        config, retryable_status_codes=frozenset(codes)
    )


def with_retryable_predicate(
    predicate: Callable[[BaseException], bool],
) -> RetryOption:
    return lambda config: replace(config, retryable_predicate=predicate)


class RetryPolicy:
    """Pure retry decisions over a RetryConfig

    Attempts are numbered from zero: ``should_retry(0, outcome)`` asks whether
    the first attempt's outcome deserves a second attempt.
    """

    def __init__(self, config: RetryConfig | None = None) -> None:
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def max_retries(self) -> int:
        return self._config.max_retries

    def is_retryable(self, outcome: httpx.Response | BaseException) -> bool:
        """Whether the outcome is of a retryable kind, ignoring attempt count"""
        if isinstance(outcome, httpx.Response):
            return outcome.status_code in self._config.retryable_status_codes
        return bool(self._config.retryable_predicate(outcome))

    def should_retry(
        self, attempt: int, outcome: httpx.Response | BaseException
    ) -> bool:
        """Decide whether another attempt should follow ``attempt``"""
        if attempt >= self._config.max_retries:
            return False
        return self.is_retryable(outcome)

    def backoff_delay(self, attempt: int) -> float:
        """Exponential delay before the retry following ``attempt``

        Non-decreasing in ``attempt`` and never above ``max_delay``.
        """
        config = self._config
        try:
            delay = config.initial_delay * (config.backoff_factor ** max(attempt, 0))
        except OverflowError:
            return config.max_delay
        return min(delay, config.max_delay)

    def jittered_delay(self, attempt: int) -> float:
        """Delay actually slept: uniform in [0, backoff_delay] when jitter is on"""
        delay = self.backoff_delay(attempt)
        if not self._config.jitter:
            return delay
        return random.uniform(0, delay)
