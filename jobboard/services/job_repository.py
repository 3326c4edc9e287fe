"""
Posting repository: the write path for a posting and its associations.

Every multi-statement write runs inside the session's transaction and either
commits as a whole or rolls back as a whole. Ownership is checked with one
query before anything is modified.
"""
import logging
from datetime import datetime, time
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jobboard.errors import (
    ConflictError,
    ForbiddenError,
    JobBoardError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from jobboard.models import Application, Bookmark, JobPosting
from jobboard.schemas.job import JobCreate
from jobboard.services.normalizer import NormalizedPosting, compute_link_hash
from jobboard.services.reference_data import (
    ReferenceKind,
    dialect_insert,
    get_or_create,
    link_associations,
    replace_associations,
    unlink_all,
)

# Configure logger
logger = logging.getLogger(__name__)

# Salary shown when the author leaves it blank ("to be negotiated")
NEGOTIABLE_SALARY = "추후 협의"


# ============================================================
# READ HELPERS
# ============================================================

def posting_load_options():
    """Eager-load everything the response schemas read."""
    return (
        selectinload(JobPosting.company),
        selectinload(JobPosting.education),
        selectinload(JobPosting.employment_type),
        selectinload(JobPosting.experiences),
        selectinload(JobPosting.locations),
        selectinload(JobPosting.sectors),
        selectinload(JobPosting.employment_types),
    )


async def load_postings(db: AsyncSession, posting_ids: list[int]) -> list[JobPosting]:
    """Load postings with associations, keeping the order of ``posting_ids``."""
    if not posting_ids:
        return []
    result = await db.execute(
        select(JobPosting)
        .where(JobPosting.id.in_(posting_ids))
        .options(*posting_load_options())
        .execution_options(populate_existing=True)
    )
    by_id = {posting.id: posting for posting in result.scalars().all()}
    return [by_id[posting_id] for posting_id in posting_ids if posting_id in by_id]


async def load_posting(db: AsyncSession, posting_id: int) -> Optional[JobPosting]:
    postings = await load_postings(db, [posting_id])
    return postings[0] if postings else None


async def _check_owner(db: AsyncSession, posting_id: int, user_id: int, action: str) -> None:
    """
    Raise NotFoundError or ForbiddenError from a single owner lookup.
    """
    result = await db.execute(
        select(JobPosting.user_id).where(JobPosting.id == posting_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Job posting not found")
    if row.user_id != user_id:
        logger.warning(
            f"User {user_id} attempted to {action} job posting {posting_id} owned by {row.user_id}"
        )
        raise ForbiddenError(f"You do not have permission to {action} this job posting")


async def _fail(db: AsyncSession, action: str, exc: Exception) -> None:
    """Roll back and translate a storage failure into the error taxonomy."""
    await db.rollback()
    if isinstance(exc, JobBoardError):
        raise exc
    if isinstance(exc, IntegrityError):
        logger.info(f"Integrity violation while trying to {action}: {exc.orig}")
        raise ConflictError(
            f"Failed to {action}: a posting with the same link already exists",
            detail=str(exc.orig),
        ) from exc
    logger.error(f"Error while trying to {action}: {str(exc)}", exc_info=True)
    raise StorageError(f"Failed to {action}", detail=str(exc)) from exc


# ============================================================
# BATCH INGESTION
# ============================================================

async def ingest_posting(
    db: AsyncSession,
    normalized: NormalizedPosting,
    owner_id: Optional[int],
) -> Optional[int]:
    """
    Insert one normalized scraped posting unless its link hash is known.

    Returns the new posting id, or None when the link was already ingested
    (first wins; the duplicate writes nothing). Does not commit: the caller
    owns the per-record transaction.
    """
    company_id = await get_or_create(db, ReferenceKind.COMPANY, normalized.company_name)

    education_id = None
    if normalized.education_level:
        education_id = await get_or_create(db, ReferenceKind.EDUCATION, normalized.education_level)

    employment_type_id = None
    if normalized.employment_types:
        employment_type_id = await get_or_create(
            db, ReferenceKind.EMPLOYMENT_TYPE, normalized.employment_types[0]
        )

    last_modified = None
    if normalized.last_modified_date:
        last_modified = datetime.combine(normalized.last_modified_date, time.min)

    stmt = dialect_insert(db, JobPosting).values(
        user_id=owner_id,
        company_id=company_id,
        title=normalized.title,
        link=normalized.link,
        link_hash=normalized.link_hash,
        education_id=education_id,
        employment_type_id=employment_type_id,
        deadline=normalized.deadline,
        salary=normalized.salary,
        last_modified_date=last_modified,
    ).on_conflict_do_nothing().returning(JobPosting.id)

    result = await db.execute(stmt)
    posting_id = result.scalar_one_or_none()
    if posting_id is None:
        logger.debug(f"Job already ingested (duplicate link): {normalized.link}")
        return None

    await link_associations(db, posting_id, ReferenceKind.EXPERIENCE, normalized.experiences)
    await link_associations(db, posting_id, ReferenceKind.LOCATION, normalized.locations)
    await link_associations(db, posting_id, ReferenceKind.SECTOR, normalized.sectors)
    await link_associations(db, posting_id, ReferenceKind.EMPLOYMENT_TYPE, normalized.employment_types)

    logger.debug(f"Ingested job {posting_id}: {normalized.title} at {normalized.company_name}")
    return posting_id


# ============================================================
# USER-SUBMITTED POSTINGS
# ============================================================

async def create_posting(db: AsyncSession, user_id: int, data: JobCreate) -> JobPosting:
    """
    Create a posting owned by ``user_id`` together with all its associations.

    Raises:
        ConflictError: same title and link (spaces ignored), or same link
        StorageError: any other failure; nothing is left half-written
    """
    title_key = data.title.replace(" ", "")
    link_key = data.link.replace(" ", "")
    link_hash = compute_link_hash(data.link)

    try:
        result = await db.execute(
            select(JobPosting.id).where(
                func.replace(JobPosting.title, " ", "") == title_key,
                func.replace(JobPosting.link, " ", "") == link_key,
            )
        )
        if result.first() is not None:
            raise ConflictError("A job posting with the same title and link already exists")

        result = await db.execute(select(JobPosting.id).where(JobPosting.link_hash == link_hash))
        if result.first() is not None:
            raise ConflictError("A job posting with the same link already exists")

        company_id = await get_or_create(db, ReferenceKind.COMPANY, data.company_name)
        education_id = await get_or_create(db, ReferenceKind.EDUCATION, data.education_level)
        employment_type_id = await get_or_create(db, ReferenceKind.EMPLOYMENT_TYPE, data.employment_type)

        posting = JobPosting(
            user_id=user_id,
            company_id=company_id,
            title=data.title,
            link=data.link,
            link_hash=link_hash,
            education_id=education_id,
            employment_type_id=employment_type_id,
            deadline=data.deadline,
            salary=data.salary or NEGOTIABLE_SALARY,
        )
        db.add(posting)
        await db.flush()

        await link_associations(db, posting.id, ReferenceKind.LOCATION, data.location_names)
        await link_associations(db, posting.id, ReferenceKind.SECTOR, data.sector_names)
        await link_associations(db, posting.id, ReferenceKind.EMPLOYMENT_TYPE, [data.employment_type])

        await db.commit()
    except Exception as e:
        await _fail(db, "create job posting", e)

    logger.info(f"Created job {posting.id}: {data.title} at {data.company_name} (owner={user_id})")
    return await load_posting(db, posting.id)


async def update_posting(
    db: AsyncSession,
    posting_id: int,
    user_id: int,
    changes: dict,
) -> JobPosting:
    """
    Apply a sparse update to a posting the caller owns.

    Supported keys: company_name, title, link, education_level, deadline,
    location_names, sector_names, employment_type, salary. Location and
    sector lists replace the whole association set.

    Raises:
        ValidationError: no fields supplied
        NotFoundError / ForbiddenError: checked before any write
        ConflictError: the new link collides with another posting
        StorageError: any other failure (everything rolled back)
    """
    if not changes:
        raise ValidationError("No fields to update")

    await _check_owner(db, posting_id, user_id, "update")

    try:
        values = {}
        if "company_name" in changes:
            values["company_id"] = await get_or_create(db, ReferenceKind.COMPANY, changes["company_name"])
        if "title" in changes:
            values["title"] = changes["title"]
        if "link" in changes:
            values["link"] = changes["link"]
            values["link_hash"] = compute_link_hash(changes["link"])
        if "education_level" in changes:
            values["education_id"] = await get_or_create(
                db, ReferenceKind.EDUCATION, changes["education_level"]
            )
        if "deadline" in changes:
            values["deadline"] = changes["deadline"]
        if "salary" in changes:
            values["salary"] = changes["salary"]
        if "employment_type" in changes:
            # Keep the denormalized FK and the junction set in sync
            values["employment_type_id"] = await get_or_create(
                db, ReferenceKind.EMPLOYMENT_TYPE, changes["employment_type"]
            )
            await replace_associations(
                db, posting_id, ReferenceKind.EMPLOYMENT_TYPE, [changes["employment_type"]]
            )
        if "location_names" in changes:
            await replace_associations(db, posting_id, ReferenceKind.LOCATION, changes["location_names"])
        if "sector_names" in changes:
            await replace_associations(db, posting_id, ReferenceKind.SECTOR, changes["sector_names"])

        values["last_modified_date"] = datetime.utcnow()
        await db.execute(
            update(JobPosting)
            .where(JobPosting.id == posting_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception as e:
        await _fail(db, "update job posting", e)

    logger.info(f"Updated job {posting_id} (fields: {sorted(changes)})")
    return await load_posting(db, posting_id)


async def delete_posting(db: AsyncSession, posting_id: int, user_id: int) -> None:
    """
    Delete a posting the caller owns, child rows first.

    Raises:
        NotFoundError: no such posting
        ForbiddenError: posting belongs to someone else
    """
    await _check_owner(db, posting_id, user_id, "delete")

    try:
        await unlink_all(db, posting_id)
        await db.execute(delete(Bookmark).where(Bookmark.job_posting_id == posting_id))
        await db.execute(delete(Application).where(Application.job_posting_id == posting_id))
        await db.execute(
            delete(JobPosting)
            .where(JobPosting.id == posting_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except Exception as e:
        await _fail(db, "delete job posting", e)

    logger.info(f"Deleted job {posting_id} (owner={user_id})")


# ============================================================
# DETAIL READ
# ============================================================

async def get_posting_detail(db: AsyncSession, posting_id: int) -> JobPosting:
    """
    Return one posting and count the read: every call adds exactly 1 view.
    """
    try:
        result = await db.execute(
            update(JobPosting)
            .where(JobPosting.id == posting_id)
            .values(views=JobPosting.views + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Job posting not found")
        await db.commit()
    except Exception as e:
        await _fail(db, "read job posting", e)

    return await load_posting(db, posting_id)
