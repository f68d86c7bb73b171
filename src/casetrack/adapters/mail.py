"""Digest delivery through Microsoft Graph ``sendMail``."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from casetrack.adapters.http_resilience import ResilientClient
from casetrack.config import get_graph_mail_config

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from casetrack.config import GraphMailConfig, ResilienceConfig
    from casetrack.domain.digest import DigestRow
    from casetrack.domain.ports.notifications import Mailer

log = getLogger(__name__)

TOKEN_EXPIRY_MARGIN = timedelta(seconds=60)

_COLUMNS: tuple[tuple[str, int], ...] = (
    ("Radicado", 24),
    ("Tipo", 12),
    ("Despacho", 28),
    ("Demandado", 28),
    ("Etapa anterior", 36),
    ("Etapa actual", 36),
)


class MailDeliveryError(RuntimeError):
    """Raised when Graph refuses a token request or a message."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class _GraphToken(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    access_token: str
    expires_in: int = Field(default=3600)


@dataclass(slots=True)
class _CachedToken:
    value: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def digest_subject(changes: Sequence[DigestRow], period_label: str, *, brand: str) -> str:
    if changes:
        return f"Reporte de cambios ({period_label}) - {brand}"
    return f"Sin novedades ({period_label}) - {brand}"


def render_digest_text(changes: Sequence[DigestRow], period_label: str) -> str:
    """Plain-text body: a fixed-width table, or a short notice when nothing changed."""

    if not changes:
        return (
            f"No se registraron cambios de etapa en sus procesos el {period_label}.\n"
        )

    lines = [
        f"Cambios de etapa registrados el {period_label}:",
        "",
        "  ".join(title.ljust(width) for title, width in _COLUMNS).rstrip(),
        "  ".join("-" * width for _, width in _COLUMNS),
    ]
    for row in changes:
        cells = (
            row.case_number or str(row.process_id),
            row.process_category or "",
            row.court_office or "",
            row.defendant_name or "",
            row.previous_client_stage,
            row.current_client_stage,
        )
        lines.append(
            "  ".join(
                _fit(cell, width) for cell, (_, width) in zip(cells, _COLUMNS, strict=True)
            ).rstrip()
        )
    lines.extend(["", f"Total de procesos con cambios: {len(changes)}"])
    return "\n".join(lines) + "\n"


def _fit(value: str, width: int) -> str:
    if len(value) > width:
        return value[: width - 1] + "…"
    return value.ljust(width)


@dataclass(slots=True)
class GraphMailer:
    """``Mailer`` implementation sending through a Graph application identity."""

    config: GraphMailConfig = field(default_factory=get_graph_mail_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    clock: Callable[[], datetime] = _utcnow
    _token: _CachedToken | None = field(default=None, init=False, repr=False)

    def send_digest(
        self,
        recipient_email: str,
        changes: Sequence[DigestRow],
        period_label: str,
    ) -> None:
        asyncio.run(self._send(recipient_email, changes, period_label))

    async def _send(
        self,
        recipient_email: str,
        changes: Sequence[DigestRow],
        period_label: str,
    ) -> None:
        message = {
            "message": {
                "subject": digest_subject(changes, period_label, brand=self.config.brand_name),
                "body": {
                    "contentType": "Text",
                    "content": render_digest_text(changes, period_label),
                },
                "toRecipients": [{"emailAddress": {"address": recipient_email}}],
            },
            "saveToSentItems": False,
        }
        path = f"/users/{self.config.from_address}/sendMail"
        async with self.client_factory(self.config.resilience) as http:
            token = await self._access_token(http)
            try:
                response = await http.post(
                    path, json=message, headers={"Authorization": f"Bearer {token}"}
                )
            except httpx.HTTPError as exc:
                raise MailDeliveryError(f"Graph sendMail failed: {exc}") from exc
        if response.status_code >= 400:
            raise MailDeliveryError(
                f"Graph sendMail returned {response.status_code}",
                status_code=response.status_code,
            )
        log.info("Sent digest %s to %s (%s rows)", period_label, recipient_email, len(changes))

    async def _access_token(self, http: ResilientClient) -> str:
        now = self.clock()
        if self._token is not None and self._token.expires_at - now > TOKEN_EXPIRY_MARGIN:
            return self._token.value

        form = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "scope": self.config.scope,
        }
        try:
            response = await http.post(self.config.token_url, data=form)
        except httpx.HTTPError as exc:
            raise MailDeliveryError(f"Graph token request failed: {exc}") from exc
        if response.status_code >= 400:
            raise MailDeliveryError(
                f"Graph token request returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = _GraphToken.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise MailDeliveryError("Unexpected Graph token payload") from exc

        self._token = _CachedToken(
            value=payload.access_token,
            expires_at=now + timedelta(seconds=payload.expires_in),
        )
        log.debug("Obtained Graph token, valid for %ss", payload.expires_in)
        return payload.access_token


if TYPE_CHECKING:
    _mailer_check: Mailer = GraphMailer()
