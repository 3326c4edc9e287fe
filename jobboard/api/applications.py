"""
Applications API endpoints.

Status rules live in services/applications.py; these handlers only map
requests to those calls.
"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.database import get_db
from jobboard.models.user import User
from jobboard.api.auth import get_current_user
from jobboard.schemas.application import (
    ApplicationListItem,
    ApplicationResponse,
    ApplyRequest,
    StatusUpdateRequest,
    application_list_item,
    application_response,
)
from jobboard.schemas.common import SuccessResponse
from jobboard.services import applications

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=SuccessResponse[ApplicationResponse], status_code=201)
async def apply(
    request: ApplyRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Apply to a job posting.

    Returns:
        201: New application
        200: Cancelled application re-activated (same application_id)
        404: Job posting not found
        409: Already applied
    """
    application, reactivated = await applications.apply(db, current_user.id, request.job_posting_id)
    if reactivated:
        response.status_code = 200
    return SuccessResponse(
        message="Application re-activated" if reactivated else "Application submitted",
        data=application_response(application),
    )


@router.get("/", response_model=SuccessResponse[List[ApplicationListItem]])
async def list_my_applications(
    status: Optional[str] = Query(None, description="applying | cancelled | hired | rejected"),
    sort_by_date: Optional[str] = Query(None, alias="sortByDate", description="asc | desc"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's applications, newest first by default."""
    items = await applications.list_applications(db, current_user.id, status, sort_by_date)
    return SuccessResponse(
        message="Applications retrieved",
        data=[application_list_item(a) for a in items],
    )


@router.delete("/{application_id}", response_model=SuccessResponse[ApplicationResponse])
async def cancel(
    application_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Cancel one of the caller's applications. Only 'applying' can be cancelled."""
    application = await applications.cancel(db, current_user.id, application_id)
    return SuccessResponse(
        message="Application cancelled",
        data=application_response(application),
    )


@router.patch("/{application_id}/status", response_model=SuccessResponse[ApplicationResponse])
async def decide(
    application_id: int,
    request: StatusUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark an application hired or rejected. Only the posting's owner may do this."""
    application = await applications.set_status(db, current_user.id, application_id, request.status)
    return SuccessResponse(
        message=f"Application marked {application.status}",
        data=application_response(application),
    )
