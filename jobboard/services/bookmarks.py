"""
Bookmark toggling and listing.

A bookmark is the presence of a (user, posting) row. Toggling tries the
delete first and only inserts when nothing was deleted.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import NotFoundError, StorageError
from jobboard.models import Bookmark, JobPosting
from jobboard.services.job_repository import load_postings
from jobboard.services.pagination import (
    PAGE_SIZE,
    Page,
    build_pagination,
    page_offset,
    validate_page_number,
)

logger = logging.getLogger(__name__)


@dataclass
class BookmarkedPosting:
    bookmarked_at: datetime
    posting: JobPosting


async def toggle_bookmark(db: AsyncSession, user_id: int, posting_id: int) -> bool:
    """
    Flip the bookmark state for (user, posting).

    Returns:
        True if the posting is now bookmarked, False if the bookmark was removed

    Raises:
        NotFoundError: the posting does not exist
    """
    exists = await db.execute(select(JobPosting.id).where(JobPosting.id == posting_id))
    if exists.first() is None:
        raise NotFoundError("Job posting not found")

    try:
        result = await db.execute(
            delete(Bookmark)
            .where(Bookmark.user_id == user_id, Bookmark.job_posting_id == posting_id)
            .execution_options(synchronize_session=False)
        )
        bookmarked = result.rowcount == 0
        if bookmarked:
            db.add(Bookmark(user_id=user_id, job_posting_id=posting_id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error toggling bookmark: {str(e)}", exc_info=True)
        raise StorageError("Failed to update bookmark", detail=str(e)) from e

    logger.info(f"User {user_id} {'added' if bookmarked else 'removed'} bookmark on job {posting_id}")
    return bookmarked


async def list_bookmarks(db: AsyncSession, user_id: int, page: Optional[int] = 1) -> Page:
    """The user's bookmarks, newest first. Items are BookmarkedPosting."""
    page = validate_page_number(page)

    total_items = (
        await db.execute(select(func.count(Bookmark.id)).where(Bookmark.user_id == user_id))
    ).scalar_one()
    pagination = build_pagination(page, total_items, "No bookmarked job postings")

    rows = (
        await db.execute(
            select(Bookmark.job_posting_id, Bookmark.created_at)
            .where(Bookmark.user_id == user_id)
            .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
            .offset(page_offset(page))
            .limit(PAGE_SIZE)
        )
    ).all()
    postings = {p.id: p for p in await load_postings(db, [row.job_posting_id for row in rows])}

    items = [
        BookmarkedPosting(bookmarked_at=row.created_at, posting=postings[row.job_posting_id])
        for row in rows
        if row.job_posting_id in postings
    ]
    return Page(items=items, pagination=pagination)
