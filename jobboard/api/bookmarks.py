"""
Bookmarks API endpoints.
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.database import get_db
from jobboard.models.user import User
from jobboard.api.auth import get_current_user
from jobboard.schemas.bookmark import BookmarkItem, BookmarkState, BookmarkToggle
from jobboard.schemas.common import PaginationSchema, SuccessResponse
from jobboard.schemas.job import JobSummary
from jobboard.services.bookmarks import list_bookmarks, toggle_bookmark

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=SuccessResponse[BookmarkState], status_code=201)
async def toggle(
    request: BookmarkToggle,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Add the bookmark if absent, remove it if present.

    Returns:
        201: Bookmark added
        200: Bookmark removed
        404: Job posting not found
    """
    bookmarked = await toggle_bookmark(db, current_user.id, request.job_posting_id)
    if not bookmarked:
        response.status_code = 200
    return SuccessResponse(
        message="Bookmark added" if bookmarked else "Bookmark removed",
        data=BookmarkState(job_posting_id=request.job_posting_id, bookmarked=bookmarked),
    )


@router.get("/", response_model=SuccessResponse[List[BookmarkItem]])
async def list_my_bookmarks(
    page: int = Query(1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """The caller's bookmarks, newest first."""
    result = await list_bookmarks(db, current_user.id, page)
    return SuccessResponse(
        message="Bookmarks retrieved",
        data=[
            BookmarkItem(
                **JobSummary.from_posting(item.posting).model_dump(),
                bookmarked_at=item.bookmarked_at,
            )
            for item in result.items
        ],
        pagination=PaginationSchema.model_validate(result.pagination),
    )
