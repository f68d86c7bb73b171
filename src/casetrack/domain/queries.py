"""Permission-scoped read access to mirrored processes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from casetrack.domain.access import AccessControlResolver, AccessScope, can_view_detail
from casetrack.domain.errors import AccessDenied, ProcessNotFound
from casetrack.domain.ports.persistence import ProcessQuery
from casetrack.domain.stages import translate_class

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from casetrack.domain.model import Principal, ProcessDetail, ProcessRecord
    from casetrack.domain.ports.fetching import ProcessDetailFetcher
    from casetrack.domain.ports.unit_of_work import CaseUnitOfWork

log = getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200


def _validate_paging(page: int, page_size: int) -> None:
    if page < 1:
        raise ValueError("page must be >= 1")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")


@dataclass(frozen=True, slots=True, kw_only=True)
class ProcessFilter:
    """Listing filters. ``process_class`` accepts provider or client vocabulary."""

    client_stage: str | None = None
    process_class: str | None = None
    court_office: str | None = None
    updated_since: datetime | None = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        _validate_paging(self.page, self.page_size)


@dataclass(frozen=True, slots=True)
class Page[T]:
    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class QueryService:
    """List, search and detail lookups, each narrowed by the caller's access scope."""

    def __init__(
        self,
        unit_of_work_factory: Callable[[], CaseUnitOfWork],
        detail_fetcher: ProcessDetailFetcher,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._detail_fetcher = detail_fetcher

    def list_processes(
        self,
        principal: Principal,
        filters: ProcessFilter | None = None,
    ) -> Page[ProcessRecord]:
        filters = filters or ProcessFilter()
        category = translate_class(filters.process_class) if filters.process_class else None
        with self._unit_of_work_factory() as uow:
            scope = AccessControlResolver(uow.repositories).resolve(principal)
            if scope.is_empty:
                return Page(page=filters.page, page_size=filters.page_size)
            query = ProcessQuery(
                identifiers=scope.identifier_filter,
                client_stage=_clean(filters.client_stage),
                process_category=category,
                court_office=_clean(filters.court_office),
                updated_since=filters.updated_since,
            )
            return self._page(uow, query, page=filters.page, page_size=filters.page_size)

    def search(
        self,
        principal: Principal,
        text: str,
        *,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[ProcessRecord]:
        _validate_paging(page, page_size)
        needle = _clean(text)
        if needle is None:
            raise ValueError("Search text must not be blank")
        with self._unit_of_work_factory() as uow:
            scope = AccessControlResolver(uow.repositories).resolve(principal)
            if scope.is_empty:
                return Page(page=page, page_size=page_size)
            query = ProcessQuery(identifiers=scope.identifier_filter, text=needle)
            return self._page(uow, query, page=page, page_size=page_size)

    def my_processes(self, principal: Principal) -> list[ProcessRecord]:
        """Processes where one of the parties carries the principal's own identifier."""

        if not principal.identifier:
            raise AccessDenied("Principal has no identifier to look up processes by")
        with self._unit_of_work_factory() as uow:
            query = ProcessQuery(subject_identifier=principal.identifier)
            return uow.repositories.processes.find(query)

    def get_detail(self, principal: Principal, process_id: int) -> ProcessDetail:
        """Fetch one process from the provider and check the caller may see it.

        A missing process raises ``ProcessNotFound`` before the ownership check,
        so callers with some visibility can learn that an id exists.
        """

        with self._unit_of_work_factory() as uow:
            scope = AccessControlResolver(uow.repositories).resolve(principal)
        if scope.is_empty and not principal.identifier:
            raise AccessDenied(f"No access to process {process_id}", process_id=process_id)

        detail = self._detail_fetcher(process_id)
        if detail is None:
            raise ProcessNotFound(process_id)
        if not can_view_detail(principal, scope, detail.subject_identifiers):
            log.info("Denied detail of process %s to %s", process_id, principal.email)
            raise AccessDenied(f"No access to process {process_id}", process_id=process_id)
        return detail

    def _page(
        self,
        uow: CaseUnitOfWork,
        query: ProcessQuery,
        *,
        page: int,
        page_size: int,
    ) -> Page[ProcessRecord]:
        repository = uow.repositories.processes
        total = repository.count(query)
        offset = (page - 1) * page_size
        items = repository.find(query, offset=offset, limit=page_size) if total > offset else []
        return Page(items=items, total=total, page=page, page_size=page_size)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


__all__ = ["AccessScope", "Page", "ProcessFilter", "QueryService"]
