"""Pydantic models for the organization roster endpoint.

This module defines the roster snapshot returned to the dashboard: doctors,
each with the patients they created and the diagnoses they authored. JSON
field names are camelCase, matching the dashboard client.

Stored patient and diagnosis documents are loosely structured, so the
``from_*`` constructors normalize them into a stable shape instead of
failing on legacy values.
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from clinic_roster.domain.records import canonical_id

Timestamp = Optional[Union[datetime, str]]


class RosterModel(BaseModel):
    """Base for roster payload models (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _normalize_text(v: Any) -> Optional[str]:
    return str(v) if v is not None else None


def _normalize_code(v: Any) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, (list, tuple)):
        joined = ", ".join(str(item) for item in v if item not in (None, ""))
        return joined or None
    return str(v)


class PatientEntry(RosterModel):
    """A patient created by the doctor."""

    id: str = Field(..., description="Patient identifier")
    name: Optional[str] = Field(None, description="Patient name")
    age: Optional[int] = Field(None, description="Age in years, null when not numeric")
    icd11: Optional[str] = Field(None, description="Diagnosis code(s)")
    disease: Optional[str] = Field(None, description="Disease label")
    created_at: Timestamp = Field(None, description="When the patient record was created")

    @field_validator("age", mode="before")
    @classmethod
    def normalize_age(cls, v: Any) -> Optional[int]:
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, float):
            return int(v) if v.is_integer() else None
        if isinstance(v, str) and v.strip().isdigit():
            return int(v.strip())
        return None

    @field_validator("icd11", "disease", mode="before")
    @classmethod
    def normalize_code(cls, v: Any) -> Optional[str]:
        return _normalize_code(v)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, v: Any) -> Optional[str]:
        return _normalize_text(v)

    @classmethod
    def from_document(cls, patient: dict) -> "PatientEntry":
        return cls(
            id=canonical_id(patient.get("_id")) or "",
            name=patient.get("name"),
            age=patient.get("age"),
            icd11=patient.get("icd11"),
            disease=patient.get("disease"),
            created_at=patient.get("createdAt"),
        )


class DiagnosisEntry(RosterModel):
    """A diagnosis authored by the doctor, on any patient it created."""

    id: str = Field(..., description="Diagnosis identifier (assigned at read time when absent)")
    patient_id: str = Field(..., description="Owning patient identifier")
    patient_name: str = Field("", description="Owning patient name")
    icd11: Optional[str] = Field(None, description="ICD-11 code")
    disease: Optional[str] = Field(None, description="Disease label")
    notes: Optional[str] = Field(None, description="Free-text notes")
    created_at: Timestamp = Field(None, description="When the diagnosis was recorded")

    @field_validator("icd11", "disease", mode="before")
    @classmethod
    def normalize_code(cls, v: Any) -> Optional[str]:
        return _normalize_code(v)

    @field_validator("notes", mode="before")
    @classmethod
    def empty_notes_are_null(cls, v: Any) -> Optional[str]:
        return str(v) if v not in (None, "") else None

    @classmethod
    def from_embedded(cls, diagnosis: dict, patient: dict, diagnosis_id: str) -> "DiagnosisEntry":
        return cls(
            id=diagnosis_id,
            patient_id=canonical_id(patient.get("_id")) or "",
            patient_name=_normalize_text(patient.get("name")) or "",
            icd11=diagnosis.get("icd11") or None,
            disease=diagnosis.get("disease") or None,
            notes=diagnosis.get("notes"),
            created_at=diagnosis.get("createdAt") or None,
        )


class DoctorEntry(RosterModel):
    """One doctor of the organization with its own records."""

    id: str = Field(..., description="Doctor identifier")
    email: Optional[str] = Field(None, description="Doctor email")
    profile: dict[str, Any] = Field(default_factory=dict, description="Profile attributes")
    patients: list[PatientEntry] = Field(default_factory=list, description="Patients the doctor created")
    diagnoses: list[DiagnosisEntry] = Field(default_factory=list, description="Diagnoses the doctor authored")


class DoctorsResponse(RosterModel):
    """Response model for an organization roster."""

    doctors: list[DoctorEntry] = Field(..., description="Doctors of the organization")


class ErrorResponse(BaseModel):
    """Error body returned by roster endpoints."""

    error: str = Field(..., description="Error message")
