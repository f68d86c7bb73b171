"""Synchronous fetchers implementing the provider ports on top of the async client."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from casetrack.adapters.http_resilience import ResilientClient
from casetrack.config import MissingConfigurationError, get_redelex_config
from casetrack.domain.ports.fetching import (
    ProcessDetailFetcher,
    ProcessReportFetcher,
    ProcessReportFetchResult,
)

from .auth import DEFAULT_GRACE, AuthTokenManager
from .client import RedelexClient
from .errors import UpstreamPayloadError
from .schema import ReportItem
from .translator import parse_process_detail, parse_report_line

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from casetrack.config import RedelexConfig, ResilienceConfig
    from casetrack.domain.model import ProcessDetail
    from casetrack.domain.ports.unit_of_work import CaseUnitOfWork
    from casetrack.domain.reconciliation.contracts import ReportLine

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@asynccontextmanager
async def _redelex_session(
    *,
    config: RedelexConfig,
    resilience: ResilienceConfig,
    client_factory: Callable[[ResilienceConfig], ResilientClient],
    unit_of_work_factory: Callable[[], CaseUnitOfWork] | None,
    grace: timedelta,
) -> AsyncIterator[RedelexClient]:
    async with client_factory(resilience) as http:
        tokens = AuthTokenManager(
            api_key=config.api_key,
            http=http,
            unit_of_work_factory=unit_of_work_factory,
            grace=grace,
        )
        yield RedelexClient(http=http, tokens=tokens)


@dataclass(slots=True)
class RedelexReportFetcher:
    """Fetch the full process report, one fresh HTTP client per call."""

    config: RedelexConfig = field(default_factory=get_redelex_config)
    unit_of_work_factory: Callable[[], CaseUnitOfWork] | None = None
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    token_grace: timedelta = DEFAULT_GRACE

    def __call__(self, *, report_id: int | None = None) -> ProcessReportFetchResult:
        resolved = report_id if report_id is not None else self.config.report_id
        if resolved is None:
            raise MissingConfigurationError("Missing configuration for: REDELEX_REPORT_ID")
        return asyncio.run(self._fetch_report(resolved))

    async def _fetch_report(self, report_id: int) -> ProcessReportFetchResult:
        async with _redelex_session(
            config=self.config,
            resilience=self.config.resilience,
            client_factory=self.client_factory,
            unit_of_work_factory=self.unit_of_work_factory,
            grace=self.token_grace,
        ) as client:
            envelope = await client.fetch_report(report_id)

        try:
            raw_items = envelope.raw_items()
        except ValueError as exc:
            raise UpstreamPayloadError(f"Report {report_id} is not a JSON array") from exc

        lines: list[ReportLine] = []
        rejected = 0
        for raw in raw_items:
            try:
                item = ReportItem.model_validate(raw)
            except ValidationError as exc:
                rejected += 1
                log.warning("Skipping unreadable report item: %s", exc.errors()[:1])
                continue
            lines.append(parse_report_line(item))

        log.info(
            "Fetched Redelex report %s: items=%s, rejected=%s", report_id, len(raw_items), rejected
        )
        return ProcessReportFetchResult(lines=lines, report_id=report_id, rejected=rejected)


@dataclass(slots=True)
class RedelexDetailFetcher:
    """Fetch a single process detail, cached briefly on disk."""

    config: RedelexConfig = field(default_factory=get_redelex_config)
    unit_of_work_factory: Callable[[], CaseUnitOfWork] | None = None
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    token_grace: timedelta = DEFAULT_GRACE

    def __call__(self, process_id: int) -> ProcessDetail | None:
        return asyncio.run(self._fetch_detail(process_id))

    async def _fetch_detail(self, process_id: int) -> ProcessDetail | None:
        async with _redelex_session(
            config=self.config,
            resilience=self.config.detail_resilience(),
            client_factory=self.client_factory,
            unit_of_work_factory=self.unit_of_work_factory,
            grace=self.token_grace,
        ) as client:
            payload = await client.fetch_process(process_id)
        if payload is None:
            return None
        return parse_process_detail(payload)


if TYPE_CHECKING:
    _report_check: ProcessReportFetcher = RedelexReportFetcher()
    _detail_check: ProcessDetailFetcher = RedelexDetailFetcher()
