"""Domain layer for Clinic Roster.

This module contains the core entities and ports of the roster service.
All domain models are pure Python with no external dependencies beyond Pydantic.
"""

from .records import (
    DoctorAccount,
    DoctorReference,
    Organization,
    canonical_id,
)

__all__ = [
    "DoctorAccount",
    "DoctorReference",
    "Organization",
    "canonical_id",
]
