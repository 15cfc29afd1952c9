"""Request observability hooks

Observers receive one record per attempt and one per completed call. They are
best-effort: an observer that raises is logged and ignored.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from loguru import logger


@dataclass(frozen=True)
class AttemptRecord:
    """Outcome of a single HTTP attempt"""

    operation: str
    method: str
    url: str
    attempt: int
    elapsed: float
    status_code: int | None = None
    error: str | None = None


@dataclass(frozen=True)
class CallRecord:
    """Outcome of a logical call after all attempts"""

    operation: str
    method: str
    url: str
    attempts: int
    elapsed: float
    status_code: int | None = None
    error_kind: str | None = None
    retries_exhausted: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error_kind is None


@runtime_checkable
class RequestObserver(Protocol):
    """Protocol for per-attempt and per-call request observation."""

    def on_attempt(self, record: AttemptRecord) -> None:
        """Called after every HTTP attempt."""
        ...

    def on_complete(self, record: CallRecord) -> None:
        """Called once per logical call with its final outcome."""
        ...


class MetricsCollector:
    """In-memory request metrics keyed by operation"""

    def __init__(self) -> None:
        self.attempts: Counter[str] = Counter()
        self.calls: Counter[str] = Counter()
        self.failures: Counter[str] = Counter()
        self.retries_exhausted: Counter[str] = Counter()
        self.status_codes: defaultdict[str, Counter[int]] = defaultdict(Counter)
        self.total_elapsed: defaultdict[str, float] = defaultdict(float)

    def on_attempt(self, record: AttemptRecord) -> None:
        self.attempts[record.operation] += 1
        if record.status_code is not None:
            self.status_codes[record.operation][record.status_code] += 1

    def on_complete(self, record: CallRecord) -> None:
        self.calls[record.operation] += 1
        self.total_elapsed[record.operation] += record.elapsed
        if not record.succeeded:
            self.failures[record.operation] += 1
        if record.retries_exhausted:
            self.retries_exhausted[record.operation] += 1

    def average_latency(self, operation: str) -> float:
        calls = self.calls[operation]
        if not calls:
            return 0.0
        return self.total_elapsed[operation] / calls

    def reset(self) -> None:
        self.attempts.clear()
        self.calls.clear()
        self.failures.clear()
        self.retries_exhausted.clear()
        self.status_codes.clear()
        self.total_elapsed.clear()


def notify_attempt(
    observer: RequestObserver | None, record: AttemptRecord
) -> None:
    if observer is None:
        return
    try:
        observer.on_attempt(record)
    except Exception as e:
        logger.warning(f"Request observer failed on attempt: {e}")


def notify_complete(observer: RequestObserver | None, record: CallRecord) -> None:
    if observer is None:
        return
    try:
        observer.on_complete(record)
    except Exception as e:
        logger.warning(f"Request observer failed on completion: {e}")
