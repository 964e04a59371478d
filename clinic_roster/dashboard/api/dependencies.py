"""Dependency injection for dashboard API.

This module provides dependency injection functions for FastAPI,
following Hexagonal Architecture principles: routes receive ports and
services, never concrete drivers.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from clinic_roster.adapters.credentials import JWTCredentialVerifier
from clinic_roster.adapters.storage import MongoDBAdapter
from clinic_roster.dashboard.services.organization_directory import OrganizationDirectory
from clinic_roster.dashboard.services.roster_service import RosterService
from clinic_roster.domain.ports import CredentialVerifierPort, DocumentStorePort
from clinic_roster.domain.services.authorization_guard import AuthorizationGuard
from clinic_roster.infrastructure.config_manager import AuthConfig
from clinic_roster.infrastructure.settings import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_document_store() -> DocumentStorePort:
    """Get the document store adapter (cached).

    The adapter connects lazily, so an unconfigured or unreachable store
    still yields an adapter; it reports itself unavailable.
    """
    store_config = settings.document_store_config
    logger.debug(f"Creating MongoDB adapter for {store_config.masked_uri()}")
    return MongoDBAdapter(store_config=store_config)


@lru_cache()
def get_auth_config() -> AuthConfig:
    """Get token verification configuration (cached).

    Raises:
        ValueError: If the development secret is configured in production
    """
    return settings.auth_config


StorageDep = Annotated[DocumentStorePort, Depends(get_document_store)]
AuthConfigDep = Annotated[AuthConfig, Depends(get_auth_config)]


def get_credential_verifier(auth_config: AuthConfigDep) -> CredentialVerifierPort:
    return JWTCredentialVerifier(auth_config)


VerifierDep = Annotated[CredentialVerifierPort, Depends(get_credential_verifier)]


def get_organization_directory(storage: StorageDep) -> OrganizationDirectory:
    return OrganizationDirectory(storage)


def get_roster_service(
    storage: StorageDep,
    verifier: VerifierDep,
    auth_config: AuthConfigDep
) -> RosterService:
    guard = AuthorizationGuard(verifier, identity_claim=auth_config.identity_claim)
    return RosterService(storage, guard, fanout_workers=settings.fanout_workers)


DirectoryDep = Annotated[OrganizationDirectory, Depends(get_organization_directory)]
RosterServiceDep = Annotated[RosterService, Depends(get_roster_service)]
