"""Snapshot reconciliation of provider process reports.

Flow of one run:
1) canonicalize flat report lines into one record per process
2) classify each record's client stage transition
3) upsert records and events in savepointed batches
4) tombstone stored records absent from the snapshot
"""

from __future__ import annotations

from .canonicalize import CanonicalSnapshot, canonicalize
from .classify import classify_transition, is_reportable_transition
from .contracts import ReconciliationResult, ReportLine
from .engine import ReconciliationEngine
from .lease import InProcessRunLease, RunLease

__all__ = [
    "CanonicalSnapshot",
    "InProcessRunLease",
    "ReconciliationEngine",
    "ReconciliationResult",
    "ReportLine",
    "RunLease",
    "canonicalize",
    "classify_transition",
    "is_reportable_transition",
]
