"""
Jobs API endpoints.
Handles job posting search, detail and CRUD operations.
"""
import logging
from typing import Optional, List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.database import get_db
from jobboard.models.user import User
from jobboard.api.auth import get_current_user
from jobboard.schemas.common import PaginationSchema, SuccessResponse
from jobboard.schemas.job import (
    JobCreate,
    JobCreated,
    JobDetail,
    JobDetailData,
    JobSummary,
    JobUpdate,
    RelatedJob,
)
from jobboard.services import job_query, job_repository
from jobboard.services.recommendations import related_postings

# Configure logger
logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================
# ENDPOINTS
# ============================================================

@router.get("/", response_model=SuccessResponse[List[JobSummary]])
async def list_jobs(
    page: int = Query(1, description="1-based page number, 20 postings per page"),
    sort: Optional[str] = Query(None, description="e.g. 'created_at DESC, views'"),
    location: Optional[int] = Query(None, description="Location id"),
    experience: Optional[int] = Query(None, description="Experience level id"),
    sector: Optional[int] = Query(None, description="Sector id"),
    keyword: Optional[str] = Query(None, description="Matches title or company name"),
    company: Optional[str] = Query(None, description="Filter by company name (partial match)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List job postings with optional filtering.
    Returns paginated results.
    """
    result = await job_query.search_postings(
        db,
        page=page,
        sort=sort,
        location=location,
        experience=experience,
        sector=sector,
        keyword=keyword,
        company=company,
    )
    return SuccessResponse(
        message="Job postings retrieved",
        data=[JobSummary.from_posting(p) for p in result.items],
        pagination=PaginationSchema.model_validate(result.pagination),
    )


@router.post("/", response_model=SuccessResponse[JobCreated], status_code=201)
async def create_job(
    job: JobCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a new job posting owned by the caller.

    Returns 409 when a posting with the same title and link (spaces ignored)
    or the same link already exists.
    """
    posting = await job_repository.create_posting(db, current_user.id, job)
    return SuccessResponse(
        message="Job posting created",
        data=JobCreated(job_posting_id=posting.id),
    )


@router.get("/sectors", response_model=SuccessResponse[List[JobSummary]])
async def list_jobs_by_sector(
    keyword: Optional[str] = Query(None, description="Part of a sector name"),
    page: int = Query(1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List postings that have a sector whose name contains ``keyword``."""
    result = await job_query.search_by_sector_name(db, keyword, page)
    return SuccessResponse(
        message="Job postings retrieved",
        data=[JobSummary.from_posting(p) for p in result.items],
        pagination=PaginationSchema.model_validate(result.pagination),
    )


@router.get("/{job_id}", response_model=SuccessResponse[JobDetailData])
async def get_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a specific job posting by ID, with up to 5 related postings.
    Every call counts one view.
    """
    posting = await job_repository.get_posting_detail(db, job_id)
    related = await related_postings(db, posting)
    return SuccessResponse(
        message="Job posting retrieved",
        data=JobDetailData(
            detail=JobDetail.from_posting(posting),
            related=[RelatedJob.from_posting(p) for p in related],
        ),
    )


@router.put("/{job_id}", response_model=SuccessResponse[JobDetail])
async def update_job(
    job_id: int,
    job: JobUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a job posting. Only the owner may update it.

    Locations and sectors, when sent, replace the whole set.
    """
    posting = await job_repository.update_posting(db, job_id, current_user.id, job.changes())
    return SuccessResponse(
        message="Job posting updated",
        data=JobDetail.from_posting(posting),
    )


@router.delete("/{job_id}", response_model=SuccessResponse)
async def delete_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a job posting together with its bookmarks and applications.
    Only the owner may delete it.
    """
    await job_repository.delete_posting(db, job_id, current_user.id)
    return SuccessResponse(message="Job posting deleted")
