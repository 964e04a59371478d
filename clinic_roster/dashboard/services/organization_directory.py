"""Organization directory service for dashboard API.

Lists organizations for navigation and resolves an organization identifier
to its record.

Listing follows the seed fallback policy: the directory is low-stakes and
must always render, so when the document store is unavailable or fails
while listing, the fixed seed organizations are returned instead of an
error. Resolution has no fallback.
"""

import logging
from datetime import datetime, timezone

from clinic_roster.domain.ports import (
    DocumentStorePort,
    OrganizationNotFoundError,
    StorageError,
)
from clinic_roster.domain.records import Organization, canonical_id
from clinic_roster.dashboard.models.organizations import OrganizationSummary

logger = logging.getLogger(__name__)

ORGANIZATIONS_COLLECTION = "organizations"

SEED_ORGANIZATIONS = (
    {"name": "Community Clinic A", "slug": "community-clinic-a"},
    {"name": "General Hospital B", "slug": "general-hospital-b"},
    {"name": "Independent Practice C", "slug": "independent-practice-c"},
)


def seed_listing() -> list[OrganizationSummary]:
    """Seed organizations as listed when the store cannot be used."""
    return [
        OrganizationSummary(id=f"org-{i}", name=org["name"])
        for i, org in enumerate(SEED_ORGANIZATIONS, start=1)
    ]


class OrganizationDirectory:
    """Service for listing and resolving organizations."""

    def __init__(self, storage: DocumentStorePort):
        """Initialize OrganizationDirectory.

        Parameters:
            storage: Document store adapter instance
        """
        self.storage = storage

    def ensure_seeded(self) -> int:
        """Insert the seed organizations if the collection is empty.

        Returns:
            Number of organizations inserted (0 when already populated)

        Raises:
            StorageError: If the store fails
        """
        if self.storage.count(ORGANIZATIONS_COLLECTION) > 0:
            return 0
        created_at = datetime.now(timezone.utc)
        inserted = self.storage.insert_many(
            ORGANIZATIONS_COLLECTION,
            [{"name": org["name"], "slug": org["slug"], "createdAt": created_at} for org in SEED_ORGANIZATIONS],
        )
        logger.info(f"Seeded {len(inserted)} default organizations")
        return len(inserted)

    def list_organizations(self) -> list[OrganizationSummary]:
        """List organizations, degrading to the seed list.

        Never raises for store failures; see the module docstring.
        """
        if not self.storage.is_available():
            return self._seed_fallback("document store unavailable")

        try:
            self.ensure_seeded()
            documents = self.storage.find(ORGANIZATIONS_COLLECTION)
        except StorageError as e:
            return self._seed_fallback(str(e))

        return [
            OrganizationSummary(id=canonical_id(doc.get("_id")) or "", name=str(doc.get("name") or ""))
            for doc in documents
        ]

    def _seed_fallback(self, reason: str) -> list[OrganizationSummary]:
        logger.warning(f"Organization listing served from seed list: {reason}")
        return seed_listing()

    def resolve(self, organization_id: str) -> Organization:
        """Resolve an organization identifier to its record.

        Raises:
            InvalidIdentifierError: If the identifier is malformed
            OrganizationNotFoundError: If no organization has this identifier
            StorageError: If the store fails
        """
        key = self.storage.parse_key(organization_id)
        document = self.storage.find_one(ORGANIZATIONS_COLLECTION, {"_id": key})
        if document is None:
            raise OrganizationNotFoundError(organization_id)
        return Organization.from_document(document)
