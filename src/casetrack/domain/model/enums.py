"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ParticipantRole(StrEnum):
    PLAINTIFF = "plaintiff"
    DEFENDANT = "defendant"


class ClientStage(StrEnum):
    """Client-facing stage vocabulary produced by the stage translator."""

    UNKNOWN = "unknown"
    DOCUMENT_COLLECTION = "document collection and validation"
    CLAIM_FILED = "claim filed"
    CLAIM_ADMITTED = "claim admitted"
    PAYMENT_ORDER = "payment order"
    NOTIFICATION = "notification"
    OBJECTIONS = "objections"
    HEARING = "hearing"
    RULING = "ruling"
    LIQUIDATION = "liquidation"
    HANDOVER = "handover"
    TERMINATION = "termination"


class ProcessCategory(StrEnum):
    COLLECTIONS = "collections"
    EVICTION = "eviction"


class Role(StrEnum):
    ADMIN = "admin"
    AFFI = "affi"
    CLIENT_COMPANY = "inmobiliaria"
    COMMERCIAL_MANAGER = "gerente_comercial"
    COMMERCIAL_DIRECTOR = "director_comercial"
    ACCOUNT_MANAGER = "gerente_cuenta"
    USER = "user"


class Capability(StrEnum):
    """Permission strings the access resolver understands."""

    VIEW_ALL_PROCESSES = "procesos:view_all"
    VIEW_OWN_PROCESSES = "procesos:view_own"
    COMMERCIAL_VIEW_GLOBAL = "commercial:view_global"
    COMMERCIAL_VIEW_TEAM = "commercial:view_team"
    COMMERCIAL_VIEW_OWN = "commercial:view_own"


class Region(StrEnum):
    REGIONS = "Regiones"
    BOGOTA = "Bogotá"
    ANTIOQUIA = "Antioquia"
    NATIONAL = "Nacional"
