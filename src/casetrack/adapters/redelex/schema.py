"""Pydantic models describing the Redelex API payloads."""

from __future__ import annotations

import json
import math
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _to_text(value: object) -> object:
    # identifiers and case numbers arrive as numbers when the export guesses a numeric column
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else str(value)
    return _blank_to_none(value)


def _to_process_id(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return round(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return round(parsed) if math.isfinite(parsed) else None
    return None


Text = Annotated[str | None, BeforeValidator(_to_text)]
ProcessId = Annotated[int | None, BeforeValidator(_to_process_id)]
Timestamp = Annotated[datetime | None, BeforeValidator(_blank_to_none)]


class RedelexBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TokenResponse(RedelexBaseModel):
    auth_token: str = Field(alias="authToken")
    expires_in_seconds: int | None = Field(default=None, alias="expiresInSeconds")

    @field_validator("auth_token")
    @classmethod
    def _require_token(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("authToken must not be blank")
        return stripped


class ReportEnvelope(RedelexBaseModel):
    json_string: str = Field(alias="jsonString")

    def raw_items(self) -> list[object]:
        """Decode the embedded JSON array of report rows."""

        decoded: object = json.loads(self.json_string) if self.json_string.strip() else []
        if not isinstance(decoded, list):
            raise ValueError("Report jsonString does not hold a JSON array")
        return list(decoded)


class ReportItem(RedelexBaseModel):
    """One row of the process report: a (process, subject) pair."""

    process_id: ProcessId = Field(default=None, alias="ID Proceso")
    case_number: Text = Field(default=None, alias="Radicacion")
    alternate_code: Text = Field(default=None, alias="Codigo Alterno")
    process_class: Text = Field(default=None, alias="Clase Proceso")
    stage: Text = Field(default=None, alias="Etapa Procesal")
    court_office: Text = Field(default=None, alias="Despacho")
    role_tag: Text = Field(default=None, alias="Calidad")
    subject_name: Text = Field(default=None, alias="Sujeto - Nombre")
    subject_identifier: Text = Field(default=None, alias="Sujeto - Identificacion")


class SubjectPayload(RedelexBaseModel):
    kind: Text = Field(default=None, alias="Tipo")
    name: Text = Field(default=None, alias="Nombre")
    identifier: Text = Field(default=None, alias="NumeroIdentificacion")


class PrecautionaryMeasurePayload(RedelexBaseModel):
    id: int | None = Field(default=None, alias="Id")
    date: Timestamp = Field(default=None, alias="Fecha")
    measure_type: Text = Field(default=None, alias="TipoMedida")
    effective: Text = Field(default=None, alias="MedidaEfectiva")
    subject_name: Text = Field(default=None, alias="Sujeto")
    asset_type: Text = Field(default=None, alias="TipoBien")
    address: Text = Field(default=None, alias="Descripcion")
    area: float | None = Field(default=None, alias="Area")
    judicial_appraisal: float | None = Field(default=None, alias="AvaluoJudicial")
    notes: Text = Field(default=None, alias="Observaciones")


class DocketEntryPayload(RedelexBaseModel):
    date: Timestamp = Field(default=None, alias="FechaActuacion")
    kind: Text = Field(default=None, alias="Tipo")
    note: Text = Field(default=None, alias="Observacion")


class CustomFieldPayload(RedelexBaseModel):
    name: Text = Field(default=None, alias="Nombre")
    value: Text = Field(default=None, alias="Valor")


class ContingencyRatingPayload(RedelexBaseModel):
    rating: Text = Field(default=None, alias="Calificacion")


class ProcessPayload(RedelexBaseModel):
    process_id: ProcessId = Field(default=None, alias="ProcesoId")
    case_number: Text = Field(default=None, alias="Radicacion")
    alternate_code: Text = Field(default=None, alias="CodigoAlterno")
    process_class: Text = Field(default=None, alias="ClaseProceso")
    stage: Text = Field(default=None, alias="Etapa")
    status: Text = Field(default=None, alias="Estado")
    region: Text = Field(default=None, alias="Regional")
    topic: Text = Field(default=None, alias="Tema")
    court_office: Text = Field(default=None, alias="DespachoConocimiento")
    origin_court_office: Text = Field(default=None, alias="DespachoOrigen")
    admission_date: Timestamp = Field(default=None, alias="FechaAdmisionDemanda")
    created_date: Timestamp = Field(default=None, alias="FechaCreacion")
    rating: ContingencyRatingPayload | None = Field(
        default=None, alias="CalificacionContingenciaProceso"
    )
    first_instance_ruling: Text = Field(default=None, alias="SentenciaPrimeraInstancia")
    first_instance_ruling_date: Timestamp = Field(
        default=None, alias="FechaSentenciaPrimeraInstancia"
    )
    lead_attorney: Text = Field(default=None, alias="ApoderadoPrincipal")
    attorneys: list[object] = Field(default_factory=list[object], alias="Abogados")
    subjects: list[SubjectPayload] = Field(default_factory=list[SubjectPayload], alias="Sujetos")
    precautionary_measures: list[PrecautionaryMeasurePayload] = Field(
        default_factory=list[PrecautionaryMeasurePayload], alias="MedidasCautelares"
    )
    docket_entries: list[DocketEntryPayload] = Field(
        default_factory=list[DocketEntryPayload], alias="Actuaciones"
    )
    custom_fields: list[CustomFieldPayload] = Field(
        default_factory=list[CustomFieldPayload], alias="CamposPersonalizados"
    )

    @field_validator(
        "attorneys",
        "subjects",
        "precautionary_measures",
        "docket_entries",
        "custom_fields",
        mode="before",
    )
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value


class ProcessEnvelope(RedelexBaseModel):
    process: ProcessPayload | None = Field(default=None, alias="proceso")
