"""Public interface for the Redelex adapter."""

from __future__ import annotations

from .auth import AuthTokenManager
from .client import RedelexClient
from .errors import RedelexError, UpstreamAuthError, UpstreamPayloadError, UpstreamUnavailable
from .fetcher import RedelexDetailFetcher, RedelexReportFetcher
from .schema import ProcessEnvelope, ProcessPayload, ReportEnvelope, ReportItem, TokenResponse
from .translator import parse_process_detail, parse_report_line, parse_role

__all__ = [
    "AuthTokenManager",
    "ProcessEnvelope",
    "ProcessPayload",
    "RedelexClient",
    "RedelexDetailFetcher",
    "RedelexError",
    "RedelexReportFetcher",
    "ReportEnvelope",
    "ReportItem",
    "TokenResponse",
    "UpstreamAuthError",
    "UpstreamPayloadError",
    "UpstreamUnavailable",
    "parse_process_detail",
    "parse_report_line",
    "parse_role",
]
