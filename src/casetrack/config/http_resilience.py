"""HTTP client settings shared by the Redelex and Graph adapters.

Both providers are called from scheduled runs, so the transport only backs off
on throttling. Timeouts and 5xx answers reach the caller untouched, which also
keeps a ``sendMail`` POST from going out twice.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final

from httpx_retries import Retry

ShouldCacheHook = Callable[[object], bool]

THROTTLED_STATUSES: Final[frozenset[int]] = frozenset({429})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Backoff for HTTP 429 answers, honouring ``Retry-After``."""

    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    status_forcelist: frozenset[int] = THROTTLED_STATUSES

    def build(self) -> Retry:
        return Retry(
            total=self.total,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            respect_retry_after_header=True,
            allowed_methods=("GET", "POST"),
            status_forcelist=tuple(self.status_forcelist),
            retry_on_exceptions=(),
        )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Sqlite response cache; ``should_cache`` receives the decoded JSON body."""

    ttl_seconds: float
    should_cache: ShouldCacheHook | None = None
    sqlite_path: str | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
