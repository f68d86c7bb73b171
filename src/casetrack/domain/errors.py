"""Domain-level error kinds surfaced by reconciliation and the query layer."""

from __future__ import annotations


class MalformedRecord(ValueError):
    """Raised for an extract line or group that cannot be turned into a process record."""

    def __init__(self, message: str, *, process_id: int | None = None) -> None:
        super().__init__(message)
        self.process_id = process_id


class PartialBatchFailure(RuntimeError):
    """Some records of a persistence batch were skipped; the rest were written."""

    def __init__(self, message: str, *, affected: int, batch_index: int) -> None:
        super().__init__(message)
        self.affected = affected
        self.batch_index = batch_index


class ReconciliationInProgress(RuntimeError):
    """Raised when a reconciliation run overlaps another one holding the run lease."""


class AccessDenied(PermissionError):
    """The principal may not see the requested process."""

    def __init__(self, message: str, *, process_id: int | None = None) -> None:
        super().__init__(message)
        self.process_id = process_id


class ProcessNotFound(LookupError):
    """The provider has no process with the requested id."""

    def __init__(self, process_id: int) -> None:
        super().__init__(f"Process {process_id} not found")
        self.process_id = process_id


class PersistenceConflict(RuntimeError):
    """A single record was rejected by the store, typically a constraint violation."""
