"""Authenticated calls against the Redelex API."""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from .errors import RedelexError, UpstreamAuthError, UpstreamPayloadError, UpstreamUnavailable
from .schema import ProcessEnvelope, ReportEnvelope

if TYPE_CHECKING:
    from casetrack.adapters.http_resilience import ResilientClient

    from .auth import AuthTokenManager
    from .schema import ProcessPayload

log = getLogger(__name__)

REPORT_PATH = "/Informes/GetInformeJson"
PROCESS_PATH = "/Procesos/GetProceso"


class RedelexClient:
    """Thin API wrapper; every call carries a token from ``tokens``."""

    def __init__(self, *, http: ResilientClient, tokens: AuthTokenManager) -> None:
        self._http = http
        self._tokens = tokens

    async def authorized_get(
        self,
        path: str,
        *,
        params: dict[str, str | int] | None = None,
    ) -> httpx.Response:
        """GET ``path`` with the current token; on 401 refresh the token and retry once."""

        token = await self._tokens.get_valid_token()
        response = await self._send(path, params=params, token=token)
        if response.status_code == httpx.codes.UNAUTHORIZED:
            log.warning("Redelex rejected the token for %s, refreshing and retrying once", path)
            token = await self._tokens.force_refresh()
            response = await self._send(path, params=params, token=token)
            if response.status_code == httpx.codes.UNAUTHORIZED:
                cause = UpstreamAuthError(
                    "Redelex rejected a freshly issued token", status_code=response.status_code
                )
                raise UpstreamUnavailable(
                    f"Redelex kept answering 401 for {path}", status_code=response.status_code
                ) from cause
        if response.status_code >= 500:
            raise UpstreamUnavailable(
                f"Redelex returned {response.status_code} for {path}",
                status_code=response.status_code,
            )
        return response

    async def fetch_report(self, report_id: int) -> ReportEnvelope:
        response = await self.authorized_get(
            REPORT_PATH,
            params={"token": self._tokens.api_key, "informeId": report_id},
        )
        _raise_for_client_error(response, REPORT_PATH)
        try:
            return ReportEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise UpstreamPayloadError(
                f"Unexpected payload for report {report_id}", status_code=response.status_code
            ) from exc

    async def fetch_process(self, process_id: int) -> ProcessPayload | None:
        """Return the process payload, or ``None`` when Redelex does not know the id."""

        response = await self.authorized_get(PROCESS_PATH, params={"procesoId": process_id})
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        _raise_for_client_error(response, PROCESS_PATH)
        if not response.content.strip():
            return None
        try:
            envelope = ProcessEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise UpstreamPayloadError(
                f"Unexpected payload for process {process_id}", status_code=response.status_code
            ) from exc
        return envelope.process

    async def _send(
        self,
        path: str,
        *,
        params: dict[str, str | int] | None,
        token: str,
    ) -> httpx.Response:
        started = time.perf_counter()
        try:
            response = await self._http.get(path, params=params, headers={"Authorization": token})
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Redelex request to {path} failed: {exc}") from exc
        log.debug(
            "Redelex GET %s answered %s in %.0f ms",
            path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response


def _raise_for_client_error(response: httpx.Response, path: str) -> None:
    if response.status_code >= 400:
        raise RedelexError(
            f"Redelex returned {response.status_code} for {path}",
            status_code=response.status_code,
        )


__all__ = ["RedelexClient"]
