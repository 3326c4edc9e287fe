"""
Recommendations API endpoints.
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.database import get_db
from jobboard.models.user import User
from jobboard.api.auth import get_current_user
from jobboard.schemas.common import PaginationSchema, SuccessResponse
from jobboard.schemas.job import JobSummary
from jobboard.services import recommendations
from jobboard.services.pagination import Page

router = APIRouter()


def _page_response(message: str, result: Page) -> SuccessResponse:
    return SuccessResponse(
        message=message,
        data=[JobSummary.from_posting(p) for p in result.items],
        pagination=PaginationSchema.model_validate(result.pagination),
    )


@router.get("/", response_model=SuccessResponse[List[JobSummary]])
async def by_preference(
    page: int = Query(1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Postings in the sectors of what the caller bookmarked or applied to.

    Returns 422 when the caller has no bookmarks or applications yet.
    """
    result = await recommendations.recommend_by_preference(db, current_user.id, page)
    return _page_response("Recommended job postings", result)


@router.get("/popular", response_model=SuccessResponse[List[JobSummary]])
async def popular(
    page: int = Query(1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Most viewed postings."""
    result = await recommendations.recommend_popular(db, page)
    return _page_response("Popular job postings", result)


@router.get("/pay", response_model=SuccessResponse[List[JobSummary]])
async def by_salary(
    page: int = Query(1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Postings with the highest annual salary."""
    result = await recommendations.recommend_by_salary(db, page)
    return _page_response("Highest paying job postings", result)
