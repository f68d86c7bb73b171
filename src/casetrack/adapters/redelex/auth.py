"""Bearer token lifecycle for the Redelex API.

Redelex trades a long-lived API key for a short-lived bearer token. The manager
keeps the current token in memory and in the token store, and refreshes it when
it is missing or about to expire. Concurrent callers that need a refresh share
one in-flight exchange and all see its outcome.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from casetrack.config import MissingConfigurationError
from casetrack.domain.model import ExternalToken

from .errors import UpstreamAuthError, UpstreamPayloadError, UpstreamUnavailable
from .schema import TokenResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from casetrack.adapters.http_resilience import ResilientClient
    from casetrack.domain.ports.unit_of_work import CaseUnitOfWork

log = getLogger(__name__)

TOKEN_EXCHANGE_PATH = "/apikeys/CreateApiKey"
DEFAULT_TOKEN_TTL_SECONDS = 86400
DEFAULT_GRACE = timedelta(seconds=60)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AuthTokenManager:
    def __init__(
        self,
        *,
        api_key: str | None,
        http: ResilientClient,
        unit_of_work_factory: Callable[[], CaseUnitOfWork] | None = None,
        grace: timedelta = DEFAULT_GRACE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._api_key = api_key.strip() if api_key else None
        self._http = http
        self._unit_of_work_factory = unit_of_work_factory
        self._grace = grace
        self._clock = clock
        self._cached: ExternalToken | None = None
        self._pending: asyncio.Task[ExternalToken] | None = None

    @property
    def api_key(self) -> str:
        return self._require_api_key()

    def _require_api_key(self) -> str:
        if not self._api_key:
            raise MissingConfigurationError("Missing configuration for: REDELEX_API_KEY")
        return self._api_key

    async def get_valid_token(self) -> str:
        """Return a token valid for at least the grace period, refreshing if needed."""

        self._require_api_key()
        token = self._cached
        if token is None:
            stored = await asyncio.to_thread(self._load_stored)
            # a refresh may have completed while the store was read
            token = self._cached or stored
        if token is not None and token.is_usable(now=self._clock(), grace=self._grace):
            self._cached = token
            return token.token
        refreshed = await self._refresh()
        return refreshed.token

    async def force_refresh(self) -> str:
        """Exchange the API key for a new token, or join an exchange already in flight."""

        self._require_api_key()
        refreshed = await self._refresh()
        return refreshed.token

    async def _refresh(self) -> ExternalToken:
        if self._pending is None:
            self._pending = asyncio.create_task(self._exchange_and_store())
        # shield so a cancelled caller does not cancel the exchange the others wait on
        return await asyncio.shield(self._pending)

    async def _exchange_and_store(self) -> ExternalToken:
        try:
            token = await self._exchange()
            await asyncio.to_thread(self._store, token)
            self._cached = token
            log.info("Obtained new Redelex token, valid until %s", token.expires_at.isoformat())
            return token
        finally:
            self._pending = None

    async def _exchange(self) -> ExternalToken:
        try:
            response = await self._http.post(TOKEN_EXCHANGE_PATH, json={"token": self.api_key})
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Redelex token exchange failed: {exc}") from exc

        status = response.status_code
        if status >= 500:
            raise UpstreamUnavailable(
                f"Redelex token exchange returned {status}", status_code=status
            )
        if status >= 400:
            raise UpstreamAuthError(
                f"Redelex rejected the API key ({status})", status_code=status
            )

        try:
            payload = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise UpstreamPayloadError(
                "Unexpected Redelex token payload", status_code=status
            ) from exc

        now = self._clock()
        ttl = payload.expires_in_seconds or DEFAULT_TOKEN_TTL_SECONDS
        return ExternalToken(
            token=payload.auth_token,
            expires_at=now + timedelta(seconds=ttl),
            created_at=now,
        )

    def _load_stored(self) -> ExternalToken | None:
        if self._unit_of_work_factory is None:
            return None
        with self._unit_of_work_factory() as uow:
            return uow.repositories.tokens.current()

    def _store(self, token: ExternalToken) -> None:
        if self._unit_of_work_factory is None:
            return
        with self._unit_of_work_factory() as uow:
            uow.repositories.tokens.replace(token)
            uow.commit()


__all__ = ["DEFAULT_GRACE", "DEFAULT_TOKEN_TTL_SECONDS", "AuthTokenManager"]
