"""Organization endpoints for dashboard API.

This module provides the organization directory listing and the
per-organization doctor roster.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse

from clinic_roster.dashboard.api.dependencies import DirectoryDep, RosterServiceDep
from clinic_roster.dashboard.models.organizations import OrganizationsResponse
from clinic_roster.dashboard.models.roster import DoctorsResponse, ErrorResponse
from clinic_roster.dashboard.services.roster_service import (
    FAILED_TO_LOAD,
    INTERNAL_FAULT,
    NOT_FOUND,
    UNAVAILABLE,
)
from clinic_roster.domain.ports import ForbiddenError, Result, UnauthenticatedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/organizations", tags=["organizations"])

STATUS_BY_ERROR_TYPE = {
    UNAVAILABLE: 503,
    NOT_FOUND: 404,
    UnauthenticatedError.error_type: 401,
    ForbiddenError.error_type: 403,
    INTERNAL_FAULT: 500,
}


def roster_error_response(result: Result) -> JSONResponse:
    """Translate a failed roster Result into its HTTP response."""
    status_code = STATUS_BY_ERROR_TYPE.get(result.error_type, 500)

    if status_code == 503:
        return JSONResponse(status_code=503, content={"doctors": []})
    if status_code == 500:
        return JSONResponse(status_code=500, content={"error": FAILED_TO_LOAD})

    if status_code in (401, 403):
        logger.warning(
            f"Roster request rejected ({result.error_type}) for organization "
            f"{result.error_details.get('organization_id')}"
        )
    return JSONResponse(status_code=status_code, content={"error": result.error})


@router.get("", response_model=OrganizationsResponse)
def list_organizations(directory: DirectoryDep) -> OrganizationsResponse:
    """List organizations for dashboard navigation.

    Always answers 200. When the document store cannot be used the seed
    organizations are listed instead.
    """
    return OrganizationsResponse(organizations=directory.list_organizations())


@router.get(
    "/{organization_id}/doctors",
    response_model=DoctorsResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid credential"},
        403: {"model": ErrorResponse, "description": "Requester is not the organization admin"},
        404: {"model": ErrorResponse, "description": "Organization not found"},
        500: {"model": ErrorResponse, "description": "Roster could not be assembled"},
        503: {"description": "Document store unavailable; body is {\"doctors\": []}"},
    },
)
def get_organization_doctors(
    organization_id: str,
    service: RosterServiceDep,
    authorization: Annotated[Optional[str], Header()] = None
):
    """Get the organization's doctors with their patients and diagnoses.

    Requires ``Authorization: Bearer <token>`` for the organization's admin.
    Each doctor carries the patients it created and the diagnoses it
    authored, including diagnoses on patients created by other doctors.
    """
    result = service.list_doctors_with_records(organization_id, authorization)
    if result.is_success():
        return result.value
    return roster_error_response(result)
