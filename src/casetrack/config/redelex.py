"""Redelex configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_var, optional_int_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

REDELEX_BASE_URL = "https://cloudapp.redelex.com/api"
REDELEX_TIMEOUT_SECONDS = 60.0
REDELEX_DETAIL_CACHE_TTL_SECONDS = 300.0


def _has_process(payload: object) -> bool:
    return isinstance(payload, dict) and payload.get("proceso") is not None


def _default_resilience(base_url: str = REDELEX_BASE_URL) -> ResilienceConfig:
    return ResilienceConfig(
        name="redelex",
        base_url=base_url,
        timeout_seconds=REDELEX_TIMEOUT_SECONDS,
        retry=RetryPolicy(),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        cache=None,
    )


@dataclass(frozen=True)
class RedelexConfig:
    """Holds Redelex API configuration values.

    ``api_key`` may be ``None`` here; the token manager refuses to run without it,
    so commands that never talk to Redelex do not need it configured.
    """

    api_key: str | None
    report_id: int | None = None
    base_url: str = REDELEX_BASE_URL
    resilience: ResilienceConfig = field(default_factory=_default_resilience)

    def detail_resilience(self) -> ResilienceConfig:
        """Variant of ``resilience`` caching successful detail lookups for a few minutes."""

        base = self.resilience
        return ResilienceConfig(
            name=f"{base.name}-detail",
            base_url=base.base_url,
            timeout_seconds=base.timeout_seconds,
            retry=base.retry,
            ratelimit=base.ratelimit,
            cache=CacheConfig(
                ttl_seconds=REDELEX_DETAIL_CACHE_TTL_SECONDS,
                should_cache=_has_process,
            ),
        )


def get_redelex_config(*, resilience: ResilienceConfig | None = None) -> RedelexConfig:
    base_url = optional_env_var("REDELEX_BASE_URL") or REDELEX_BASE_URL
    return RedelexConfig(
        api_key=optional_env_var("REDELEX_API_KEY"),
        report_id=optional_int_env_var("REDELEX_REPORT_ID"),
        base_url=base_url,
        resilience=resilience or _default_resilience(base_url),
    )
