"""Translate the provider's internal stage and class vocabulary into client-facing terms.

Both mappers are pure. Matching ignores case, accents and repeated whitespace.
The stage mapper tries the exact table first and falls back to ordered keyword
rules; anything still unmatched passes through uppercased so that a new internal
stage surfaces to clients instead of disappearing.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Final

from casetrack.domain.model.enums import ClientStage, ProcessCategory

_WHITESPACE = re.compile(r"\s+")


def normalize_term(value: str | None) -> str:
    """Uppercase, strip accents and collapse whitespace."""

    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFKD", value)
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", without_marks).strip().upper()


_STAGE_TABLE: Final[dict[str, ClientStage]] = {
    # intake and paperwork
    "RECEPCION DOCUMENTOS": ClientStage.DOCUMENT_COLLECTION,
    "RECOLECCION DOCUMENTOS": ClientStage.DOCUMENT_COLLECTION,
    "RECOLECCION Y VALIDACION DOCUMENTAL": ClientStage.DOCUMENT_COLLECTION,
    "VALIDACION DOCUMENTOS": ClientStage.DOCUMENT_COLLECTION,
    "VALIDACION DOCUMENTAL": ClientStage.DOCUMENT_COLLECTION,
    "ESTUDIO DOCUMENTOS": ClientStage.DOCUMENT_COLLECTION,
    "REVISION DOCUMENTAL": ClientStage.DOCUMENT_COLLECTION,
    "PENDIENTE DOCUMENTOS": ClientStage.DOCUMENT_COLLECTION,
    "ASIGNACION ABOGADO": ClientStage.DOCUMENT_COLLECTION,
    "DOCUMENTACION": ClientStage.DOCUMENT_COLLECTION,
    "PREJURIDICO": ClientStage.DOCUMENT_COLLECTION,
    # claim
    "DEMANDA": ClientStage.CLAIM_FILED,
    "PRESENTACION DEMANDA": ClientStage.CLAIM_FILED,
    "RADICACION DEMANDA": ClientStage.CLAIM_FILED,
    "DEMANDA RADICADA": ClientStage.CLAIM_FILED,
    "REPARTO": ClientStage.CLAIM_FILED,
    "INADMISION": ClientStage.CLAIM_FILED,
    "SUBSANACION DEMANDA": ClientStage.CLAIM_FILED,
    "ADMISION": ClientStage.CLAIM_ADMITTED,
    "ADMISION DEMANDA": ClientStage.CLAIM_ADMITTED,
    "AUTO ADMISORIO": ClientStage.CLAIM_ADMITTED,
    "MANDAMIENTO": ClientStage.PAYMENT_ORDER,
    "MANDAMIENTO DE PAGO": ClientStage.PAYMENT_ORDER,
    "LIBRA MANDAMIENTO": ClientStage.PAYMENT_ORDER,
    # service of process
    "NOTIFICACION": ClientStage.NOTIFICATION,
    "NOTIFICACION PERSONAL": ClientStage.NOTIFICATION,
    "NOTIFICACION POR AVISO": ClientStage.NOTIFICATION,
    "CITACION": ClientStage.NOTIFICATION,
    "EMPLAZAMIENTO": ClientStage.NOTIFICATION,
    "CURADOR AD LITEM": ClientStage.NOTIFICATION,
    # defence
    "EXCEPCIONES": ClientStage.OBJECTIONS,
    "TRASLADO EXCEPCIONES": ClientStage.OBJECTIONS,
    "CONTESTACION": ClientStage.OBJECTIONS,
    "CONTESTACION DEMANDA": ClientStage.OBJECTIONS,
    "RECURSO": ClientStage.OBJECTIONS,
    "AUDIENCIA": ClientStage.HEARING,
    "AUDIENCIA INICIAL": ClientStage.HEARING,
    "AUDIENCIA DE INSTRUCCION Y JUZGAMIENTO": ClientStage.HEARING,
    "AUDIENCIA CONCENTRADA": ClientStage.HEARING,
    "SENTENCIA": ClientStage.RULING,
    "FALLO": ClientStage.RULING,
    "AUTO SEGUIR ADELANTE": ClientStage.RULING,
    "ORDEN SEGUIR ADELANTE LA EJECUCION": ClientStage.RULING,
    # enforcement
    "LIQUIDACION": ClientStage.LIQUIDATION,
    "LIQUIDACION CREDITO": ClientStage.LIQUIDATION,
    "LIQUIDACION DE COSTAS": ClientStage.LIQUIDATION,
    "AVALUO": ClientStage.LIQUIDATION,
    "REMATE": ClientStage.LIQUIDATION,
    "LANZAMIENTO": ClientStage.HANDOVER,
    "DILIGENCIA DE ENTREGA": ClientStage.HANDOVER,
    "ENTREGA INMUEBLE": ClientStage.HANDOVER,
    "RESTITUCION": ClientStage.HANDOVER,
    "DESALOJO": ClientStage.HANDOVER,
    # closure
    "TERMINACION": ClientStage.TERMINATION,
    "TERMINADO": ClientStage.TERMINATION,
    "TERMINACION POR PAGO": ClientStage.TERMINATION,
    "DESISTIMIENTO": ClientStage.TERMINATION,
    "RETIRO DEMANDA": ClientStage.TERMINATION,
    "TRANSACCION": ClientStage.TERMINATION,
    "ARCHIVO": ClientStage.TERMINATION,
}

# first match wins, so more specific keywords come first
_STAGE_KEYWORDS: Final[tuple[tuple[str, ClientStage], ...]] = (
    ("TERMINACION", ClientStage.TERMINATION),
    ("TERMINAD", ClientStage.TERMINATION),
    ("DESISTIMIENTO", ClientStage.TERMINATION),
    ("RETIRO", ClientStage.TERMINATION),
    ("TRANSACCION", ClientStage.TERMINATION),
    ("ARCHIV", ClientStage.TERMINATION),
    ("MANDAMIENTO", ClientStage.PAYMENT_ORDER),
    # before ADMISION, which it contains
    ("INADMI", ClientStage.CLAIM_FILED),
    ("ADMISION", ClientStage.CLAIM_ADMITTED),
    ("ADMISORIO", ClientStage.CLAIM_ADMITTED),
    ("NOTIFICACION", ClientStage.NOTIFICATION),
    ("EMPLAZAMIENTO", ClientStage.NOTIFICATION),
    ("EXCEPCION", ClientStage.OBJECTIONS),
    ("CONTESTACION", ClientStage.OBJECTIONS),
    ("AUDIENCIA", ClientStage.HEARING),
    ("SENTENCIA", ClientStage.RULING),
    ("LIQUIDACION", ClientStage.LIQUIDATION),
    ("AVALUO", ClientStage.LIQUIDATION),
    ("REMATE", ClientStage.LIQUIDATION),
    ("LANZAMIENTO", ClientStage.HANDOVER),
    ("ENTREGA", ClientStage.HANDOVER),
    ("DOCUMENT", ClientStage.DOCUMENT_COLLECTION),
    ("DEMANDA", ClientStage.CLAIM_FILED),
)

_CLASS_TABLE: Final[dict[str, ProcessCategory]] = {
    "EJECUTIVO": ProcessCategory.COLLECTIONS,
    "EJECUTIVO SINGULAR": ProcessCategory.COLLECTIONS,
    "EJECUTIVO DE MINIMA CUANTIA": ProcessCategory.COLLECTIONS,
    "EJECUTIVO DE MENOR CUANTIA": ProcessCategory.COLLECTIONS,
    "VERBAL": ProcessCategory.EVICTION,
    "VERBAL SUMARIO": ProcessCategory.EVICTION,
    "RESTITUCION DE INMUEBLE ARRENDADO": ProcessCategory.EVICTION,
    "VERBAL SUMARIO RESTITUCION": ProcessCategory.EVICTION,
}


def translate_stage(value: str | None) -> str:
    """Map an internal stage to its client-facing label."""

    term = normalize_term(value)
    if not term:
        return ClientStage.UNKNOWN.value
    exact = _STAGE_TABLE.get(term)
    if exact is not None:
        return exact.value
    for keyword, stage in _STAGE_KEYWORDS:
        if keyword in term:
            return stage.value
    return _WHITESPACE.sub(" ", value or "").strip().upper()


def translate_class(value: str | None) -> str | None:
    """Map an internal process class to the two-valued client category."""

    if value is None:
        return None
    term = normalize_term(value)
    category = _CLASS_TABLE.get(term)
    if category is not None:
        return category.value
    return value.strip()


def is_intake_transition(previous: str, current: str) -> bool:
    """Return whether ``previous -> current`` describes a process entering the system."""

    return previous == ClientStage.UNKNOWN and current == ClientStage.DOCUMENT_COLLECTION
