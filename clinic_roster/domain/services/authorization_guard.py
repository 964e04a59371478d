"""Authorization guard for organization rosters.

Decides whether the bearer of a request may read an organization's roster.
Only the organization's administrator may. The guard runs before any user,
patient or diagnosis data is read, so a denied caller learns nothing beyond
the fact that the organization exists.

Security Impact:
    - Verification failures are reported uniformly as "invalid token" so
      the response is not an oracle for why a token was rejected
    - Identities are compared in canonical string form on both sides
"""

import logging
from typing import Optional

from clinic_roster.domain.ports import (
    CredentialVerifierPort,
    ForbiddenError,
    InvalidCredentialError,
    UnauthenticatedError,
)
from clinic_roster.domain.records import Organization, canonical_id

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

MISSING_TOKEN = "missing token"
INVALID_TOKEN = "invalid token"
INVALID_REQUESTER = "invalid requester"
FORBIDDEN = "forbidden"


def extract_bearer_token(authorization_header: Optional[str]) -> Optional[str]:
    """Return the token part of a ``Bearer`` authorization header.

    Returns None when the header is absent or uses another scheme. An empty
    token after the prefix is returned as an empty string and fails
    verification.
    """
    if not authorization_header or not authorization_header.startswith(BEARER_PREFIX):
        return None
    return authorization_header[len(BEARER_PREFIX):].strip()


class AuthorizationGuard:
    """Checks that a request comes from an organization's administrator."""

    def __init__(self, verifier: CredentialVerifierPort, identity_claim: str = "id"):
        """Initialize AuthorizationGuard.

        Parameters:
            verifier: Credential verifier used as a black box
            identity_claim: Name of the claim carrying the requester identity
        """
        self.verifier = verifier
        self.identity_claim = identity_claim

    def authenticate(self, authorization_header: Optional[str]) -> str:
        """Verify the bearer credential and return the requester identity.

        Raises:
            UnauthenticatedError: missing token, invalid token or invalid requester
        """
        token = extract_bearer_token(authorization_header)
        if token is None:
            raise UnauthenticatedError(MISSING_TOKEN)

        try:
            claims = self.verifier.verify(token)
        except InvalidCredentialError as e:
            logger.debug(f"Credential rejected: {str(e)}")
            raise UnauthenticatedError(INVALID_TOKEN)

        requester_id = canonical_id(claims.get(self.identity_claim)) if isinstance(claims, dict) else None
        if requester_id is None:
            raise UnauthenticatedError(INVALID_REQUESTER)
        return requester_id

    def authorize(self, authorization_header: Optional[str], organization: Organization) -> str:
        """Return the requester identity if they administer ``organization``.

        Parameters:
            authorization_header: Raw ``Authorization`` header value
            organization: The resolved organization

        Returns:
            Canonical requester identity

        Raises:
            UnauthenticatedError: If the credential is missing or unusable
            ForbiddenError: If the requester is not the organization's admin
        """
        requester_id = self.authenticate(authorization_header)

        admin_id = canonical_id(organization.admin)
        if admin_id is None or admin_id != requester_id:
            logger.info(f"Roster access denied for organization {organization.id}")
            raise ForbiddenError(FORBIDDEN)
        return requester_id
