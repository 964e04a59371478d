"""Dashboard Pydantic models."""

from clinic_roster.dashboard.models.health import HealthResponse, DatabaseHealth
from clinic_roster.dashboard.models.organizations import OrganizationSummary, OrganizationsResponse
from clinic_roster.dashboard.models.roster import (
    DiagnosisEntry,
    DoctorEntry,
    DoctorsResponse,
    ErrorResponse,
    PatientEntry,
)
