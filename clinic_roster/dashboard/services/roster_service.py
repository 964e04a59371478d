"""Organization roster service for dashboard API.

Builds the roster snapshot for one organization: its doctors, the patients
each doctor created and the diagnoses each doctor authored on those
patients.

Order of work per request:
    1. Check the document store is available
    2. Resolve the organization
    3. Authorize the caller as the organization's admin
    4. Load the organization's doctors
    5. Fan out per doctor: patients by author, then diagnoses by author

Nothing past step 2 is read for a caller who fails step 3. Any failure in
steps 4-5 fails the whole request; a partial roster is never returned.

Security Impact:
    - Diagnoses are filtered by their own author, not the patient's, so a
      diagnosis written by one doctor on another doctor's patient appears
      only under its author
    - Email attribution is disabled for doctors sharing an email within an
      organization, so one doctor's records cannot surface under another
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from clinic_roster.domain.ports import (
    AuthorizationError,
    DocumentStorePort,
    InvalidIdentifierError,
    OrganizationNotFoundError,
    Result,
    StorageError,
    StorageUnavailableError,
)
from clinic_roster.domain.records import (
    DOCTOR_ROLE,
    DoctorAccount,
    DoctorReference,
    Organization,
    canonical_id,
)
from clinic_roster.domain.services.authorization_guard import AuthorizationGuard
from clinic_roster.dashboard.models.roster import (
    DiagnosisEntry,
    DoctorEntry,
    DoctorsResponse,
    PatientEntry,
)
from clinic_roster.dashboard.services.organization_directory import OrganizationDirectory

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
PATIENTS_COLLECTION = "patients"

# Failure kinds reported in Result.error_type
UNAVAILABLE = "Unavailable"
NOT_FOUND = "NotFound"
INTERNAL_FAULT = "InternalFault"

ORGANIZATION_NOT_FOUND = "organization not found"
FAILED_TO_LOAD = "failed to load doctors"


class RosterService:
    """Service assembling an organization's doctors with their records."""

    def __init__(
        self,
        storage: DocumentStorePort,
        guard: AuthorizationGuard,
        directory: Optional[OrganizationDirectory] = None,
        fanout_workers: int = 1
    ):
        """Initialize RosterService.

        Parameters:
            storage: Document store adapter instance
            guard: Authorization guard for the organization admin check
            directory: Organization directory (built from storage if omitted)
            fanout_workers: Threads used for per-doctor fan-out (1 = sequential)
        """
        self.storage = storage
        self.guard = guard
        self.directory = directory or OrganizationDirectory(storage)
        self.fanout_workers = max(1, fanout_workers)

    def list_doctors_with_records(
        self,
        organization_id: str,
        authorization_header: Optional[str]
    ) -> Result[DoctorsResponse]:
        """Get the roster snapshot for an organization.

        Parameters:
            organization_id: Organization identifier from the request path
            authorization_header: Raw ``Authorization`` header value

        Returns:
            Result containing DoctorsResponse, or a failure whose error_type is
            one of Unavailable, NotFound, Unauthenticated, Forbidden, InternalFault
        """
        details = {"organization_id": organization_id}

        if not self.storage.is_available():
            return Result.failure_result("document store unavailable", error_type=UNAVAILABLE, error_details=details)

        try:
            organization = self.directory.resolve(organization_id)
        except (InvalidIdentifierError, OrganizationNotFoundError):
            return Result.failure_result(ORGANIZATION_NOT_FOUND, error_type=NOT_FOUND, error_details=details)
        except StorageUnavailableError as e:
            logger.warning(f"Document store became unavailable resolving organization {organization_id}: {str(e)}")
            return Result.failure_result("document store unavailable", error_type=UNAVAILABLE, error_details=details)
        except StorageError as e:
            logger.error(f"Failed to resolve organization {organization_id}: {str(e)}")
            return Result.failure_result(FAILED_TO_LOAD, error_type=INTERNAL_FAULT, error_details=details)

        try:
            self.guard.authorize(authorization_header, organization)
        except AuthorizationError as e:
            return Result.failure_result(e.public_message, error_type=e.error_type, error_details=details)

        try:
            doctors = self._assemble(organization)
        except StorageError as e:
            logger.error(f"Roster aggregation failed for organization {organization_id}: {str(e)}")
            return Result.failure_result(FAILED_TO_LOAD, error_type=INTERNAL_FAULT, error_details=details)
        except Exception as e:
            logger.error(f"Unexpected error assembling roster for organization {organization_id}: {str(e)}", exc_info=True)
            return Result.failure_result(FAILED_TO_LOAD, error_type=INTERNAL_FAULT, error_details=details)

        logger.info(f"Assembled roster for organization {organization_id}: {len(doctors)} doctors")
        return Result.success_result(DoctorsResponse(doctors=doctors))

    def _assemble(self, organization: Organization) -> list[DoctorEntry]:
        doctors = self.load_doctors(organization)
        pairs = list(zip(doctors, self.build_references(doctors)))

        if self.fanout_workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=min(self.fanout_workers, len(pairs))) as executor:
                # map keeps input order, so each entry stays paired with its doctor
                return list(executor.map(lambda pair: self.doctor_entry(*pair), pairs))
        return [self.doctor_entry(doctor, reference) for doctor, reference in pairs]

    def load_doctors(self, organization: Organization) -> list[DoctorAccount]:
        """Load the doctor accounts whose profile points at the organization."""
        documents = self.storage.find(
            USERS_COLLECTION,
            {"profile.organizationId": organization.id, "role": DOCTOR_ROLE},
        )
        return [
            DoctorAccount.from_document(doc)
            for doc in documents
            if doc.get("role") == DOCTOR_ROLE
        ]

    def build_references(self, doctors: list[DoctorAccount]) -> list[DoctorReference]:
        """Build one DoctorReference per doctor, in the same order.

        Email is treated as unique within an organization. Doctors that share
        an email are matched by identity only.
        """
        email_counts = Counter(d.email.strip().lower() for d in doctors if d.email)
        references = []
        for doctor in doctors:
            email = doctor.email
            if email and email_counts[email.strip().lower()] > 1:
                logger.warning(
                    f"Doctor {doctor.id} shares its email with another doctor; "
                    "attributing records by identity only"
                )
                email = None
            references.append(DoctorReference(
                identity=doctor.id,
                email=email,
                native_identity=self._native_key(doctor.id),
            ))
        return references

    def _native_key(self, identity: str):
        try:
            return self.storage.parse_key(identity)
        except InvalidIdentifierError:
            return None

    def doctor_entry(self, doctor: DoctorAccount, reference: DoctorReference) -> DoctorEntry:
        """Resolve one doctor's patients and authored diagnoses."""
        patients = self.storage.find(
            PATIENTS_COLLECTION,
            {"createdBy": {"$in": reference.created_by_forms()}},
        )

        diagnoses = []
        for patient in patients:
            embedded = patient.get("diagnoses")
            if not isinstance(embedded, list):
                continue
            for diagnosis in embedded:
                if not isinstance(diagnosis, dict) or not reference.matches(diagnosis.get("createdBy")):
                    continue
                diagnosis_id = canonical_id(diagnosis.get("id")) or self.storage.generate_key()
                diagnoses.append(DiagnosisEntry.from_embedded(diagnosis, patient, diagnosis_id))

        return DoctorEntry(
            id=doctor.id,
            email=doctor.email,
            profile=doctor.profile,
            patients=[PatientEntry.from_document(p) for p in patients],
            diagnoses=diagnoses,
        )
