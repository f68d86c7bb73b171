"""Defaults for the reconciliation and digest jobs."""

from __future__ import annotations

from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .env import optional_env_var, optional_int_env_var
from .errors import ConfigurationError

DEFAULT_RECONCILIATION_BATCH_SIZE = 1000
DEFAULT_EVENT_RETENTION_DAYS = 30
DEFAULT_TOKEN_GRACE_SECONDS = 60
DEFAULT_DIGEST_TIMEZONE = "America/Bogota"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    batch_size: int = DEFAULT_RECONCILIATION_BATCH_SIZE
    event_retention_days: int = DEFAULT_EVENT_RETENTION_DAYS
    token_grace_seconds: int = DEFAULT_TOKEN_GRACE_SECONDS


@dataclass(frozen=True, slots=True)
class DigestConfig:
    timezone: ZoneInfo
    event_retention_days: int = DEFAULT_EVENT_RETENTION_DAYS


def _positive_int_env_var(name: str) -> int | None:
    value = optional_int_env_var(name)
    if value is not None and value <= 0:
        raise ConfigurationError(f"{name} must be positive")
    return value


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        batch_size=_positive_int_env_var("RECONCILIATION_BATCH_SIZE")
        or DEFAULT_RECONCILIATION_BATCH_SIZE,
        event_retention_days=_positive_int_env_var("EVENT_RETENTION_DAYS")
        or DEFAULT_EVENT_RETENTION_DAYS,
        token_grace_seconds=_positive_int_env_var("REDELEX_TOKEN_GRACE_SECONDS")
        or DEFAULT_TOKEN_GRACE_SECONDS,
    )


def get_digest_config() -> DigestConfig:
    name = optional_env_var("DIGEST_TIMEZONE") or DEFAULT_DIGEST_TIMEZONE
    try:
        timezone = ZoneInfo(name)
    except ZoneInfoNotFoundError as exc:
        raise ConfigurationError(f"Unknown DIGEST_TIMEZONE: {name}") from exc
    return DigestConfig(
        timezone=timezone,
        event_retention_days=_positive_int_env_var("EVENT_RETENTION_DAYS")
        or DEFAULT_EVENT_RETENTION_DAYS,
    )
