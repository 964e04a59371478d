"""Roster Record Definitions.

This module defines the domain entities the roster core reads from the
document store (organizations and doctor accounts) and the doctor reference
used to attribute patients and diagnoses to their author.

Security Impact:
    - Every identity comparison goes through ``canonical_id`` so that a
      native store key and a claim-embedded string compare equal
    - Doctor references never match on an absent email, so records with an
      empty ``createdBy`` cannot be attributed to a doctor without one

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Documents arrive from adapters with keys already canonicalized
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DOCTOR_ROLE = "doctor"
ORGANIZATION_ROLE = "organization"


def canonical_id(value: Any) -> Optional[str]:
    """Return the canonical string form of an identity.

    Native keys, strings and numbers all collapse to ``str(value)`` with
    surrounding whitespace removed. None and empty values have no identity.
    """
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class Organization(BaseModel):
    """An organization record as resolved by the directory.

    Parameters:
        id: Canonical organization identity
        name: Display name
        slug: URL-safe identifier
        admin: Canonical identity of the administering user (None for seed rows)
        created_at: Creation timestamp as stored
    """

    id: str
    name: str = ""
    slug: Optional[str] = None
    admin: Optional[str] = None
    created_at: Optional[Union[datetime, str]] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("admin", mode="before")
    @classmethod
    def canonicalize_admin(cls, v: Any) -> Optional[str]:
        return canonical_id(v)

    @classmethod
    def from_document(cls, document: dict) -> "Organization":
        return cls(
            id=canonical_id(document.get("_id")) or "",
            name=str(document.get("name") or ""),
            slug=document.get("slug"),
            admin=document.get("admin"),
            created_at=document.get("createdAt"),
        )


class DoctorAccount(BaseModel):
    """A user account with the doctor role.

    Parameters:
        id: Canonical user identity
        email: Account email, used as a secondary correlation key
        role: Account role
        profile: Loosely-structured profile attributes
    """

    id: str
    email: Optional[str] = None
    role: str = DOCTOR_ROLE
    profile: dict[str, Any] = Field(default_factory=dict)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        # Stored form is kept; createdBy values were written with it
        text = str(v)
        return text if text.strip() else None

    @field_validator("profile", mode="before")
    @classmethod
    def missing_profile_is_empty(cls, v: Any) -> dict:
        return v if isinstance(v, dict) else {}

    @classmethod
    def from_document(cls, document: dict) -> "DoctorAccount":
        return cls(
            id=canonical_id(document.get("_id")) or "",
            email=document.get("email"),
            role=document.get("role") or DOCTOR_ROLE,
            profile=document.get("profile"),
        )


@dataclass(frozen=True)
class DoctorReference:
    """The forms under which a doctor may appear in a ``createdBy`` field.

    Historical records carry either the doctor's identity or email, so a
    reference holds both and matches against either. ``native_identity`` is
    the identity in the store's key form, used only when querying since
    some records store the key itself rather than its string.

    Attributes:
        identity: Canonical doctor identity
        email: Doctor email, or None when email attribution is disabled
        native_identity: Identity as a store-native key (optional)
    """

    identity: str
    email: Optional[str] = None
    native_identity: Any = None

    def created_by_forms(self) -> list:
        """Return every stored ``createdBy`` value that refers to this doctor."""
        forms: list = [self.identity]
        if self.native_identity is not None:
            forms.append(self.native_identity)
        if self.email:
            forms.append(self.email)
        return forms

    def matches(self, created_by: Any) -> bool:
        """Check whether a ``createdBy`` value refers to this doctor."""
        author = canonical_id(created_by)
        if author is None:
            return False
        if author == self.identity:
            return True
        return bool(self.email) and author == canonical_id(self.email)
