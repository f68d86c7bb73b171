"""Mutual exclusion for reconciliation runs."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from casetrack.domain.errors import ReconciliationInProgress

if TYPE_CHECKING:
    from collections.abc import Iterator
    from contextlib import AbstractContextManager


@runtime_checkable
class RunLease(Protocol):
    """Grants exclusive ownership of the process store for one run."""

    def hold(self) -> AbstractContextManager[None]:
        """Context manager held for the whole run; raises ``ReconciliationInProgress`` if taken."""
        ...


class InProcessRunLease:
    """Non-blocking lease guarding runs within one interpreter.

    Exclusion across processes or hosts is left to whatever schedules the job.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def held(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise ReconciliationInProgress("Another reconciliation run holds the lease")
        try:
            yield
        finally:
            self._lock.release()


DEFAULT_RUN_LEASE = InProcessRunLease()


__all__ = ["DEFAULT_RUN_LEASE", "InProcessRunLease", "RunLease"]
