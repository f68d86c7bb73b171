"""Errors raised by the Redelex adapter."""

from __future__ import annotations


class RedelexError(RuntimeError):
    """Base class for Redelex adapter failures."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamAuthError(RedelexError):
    """Redelex rejected our credentials (token exchange or an authorized call)."""


class UpstreamUnavailable(RedelexError):
    """Redelex could not serve the request: network failure, 5xx, or auth that never recovered."""


class UpstreamPayloadError(RedelexError):
    """Redelex answered with a body we cannot interpret."""


__all__ = ["RedelexError", "UpstreamAuthError", "UpstreamPayloadError", "UpstreamUnavailable"]
