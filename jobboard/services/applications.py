"""
Applications and their status machine.
ALL status changes go through this module.

One row per (user, posting) ever: applying again after a cancel re-activates
the same row instead of inserting a new one.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from jobboard.errors import (
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NoResultsError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from jobboard.models import Application, ApplicationStatus, JobPosting

# Configure logger
logger = logging.getLogger(__name__)


# Define allowed status transitions
ALLOWED_TRANSITIONS: Dict[ApplicationStatus, list[ApplicationStatus]] = {
    ApplicationStatus.APPLYING: [
        ApplicationStatus.CANCELLED,
        ApplicationStatus.HIRED,
        ApplicationStatus.REJECTED,
    ],
    ApplicationStatus.CANCELLED: [ApplicationStatus.APPLYING],  # Re-application
    ApplicationStatus.HIRED: [],  # Terminal state
    ApplicationStatus.REJECTED: [],  # Terminal state
}

# Statuses the posting owner may set
OWNER_DECISIONS = {ApplicationStatus.HIRED, ApplicationStatus.REJECTED}


def can_transition(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    """Check if a transition is allowed without modifying the database"""
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def _transition(application: Application, to_status: ApplicationStatus) -> None:
    current = ApplicationStatus(application.status)
    if not can_transition(current, to_status):
        raise InvalidTransitionError(
            f"Invalid transition from {current.value} to {to_status.value}"
        )
    application.status = to_status.value
    application.updated_at = datetime.utcnow()


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error while trying to {action}: {str(e)}", exc_info=True)
        raise StorageError(f"Failed to {action}", detail=str(e)) from e


async def apply(db: AsyncSession, user_id: int, posting_id: int) -> tuple[Application, bool]:
    """
    Apply to a posting, or re-activate a cancelled application.

    Returns:
        (application, reactivated)

    Raises:
        NotFoundError: posting does not exist
        ConflictError: an application that is not cancelled already exists
    """
    posting = await db.execute(select(JobPosting.id).where(JobPosting.id == posting_id))
    if posting.first() is None:
        raise NotFoundError("Job posting not found")

    result = await db.execute(
        select(Application).where(
            Application.user_id == user_id,
            Application.job_posting_id == posting_id,
        )
    )
    existing = result.scalar_one_or_none()

    if existing:
        if existing.status != ApplicationStatus.CANCELLED.value:
            raise ConflictError("You have already applied to this job posting")
        _transition(existing, ApplicationStatus.APPLYING)
        await _commit(db, "re-activate application")
        logger.info(f"Re-activated application {existing.id} (user={user_id}, job={posting_id})")
        return existing, True

    application = Application(
        user_id=user_id,
        job_posting_id=posting_id,
        status=ApplicationStatus.APPLYING.value,
    )
    db.add(application)
    await _commit(db, "apply to job posting")
    await db.refresh(application)

    logger.info(f"Created application {application.id} (user={user_id}, job={posting_id})")
    return application, False


async def cancel(db: AsyncSession, user_id: int, application_id: int) -> Application:
    """
    Cancel one of the caller's applications.

    Raises:
        NotFoundError: no such application for this user
        ValidationError: the application is not in the applying state
    """
    result = await db.execute(
        select(Application).where(
            Application.id == application_id,
            Application.user_id == user_id,
        )
    )
    application = result.scalar_one_or_none()
    if not application:
        raise NotFoundError("Application not found")

    if application.status != ApplicationStatus.APPLYING.value:
        raise ValidationError("Only applications in the applying state can be cancelled")

    _transition(application, ApplicationStatus.CANCELLED)
    await _commit(db, "cancel application")

    logger.info(f"Cancelled application {application_id} (user={user_id})")
    return application


async def set_status(
    db: AsyncSession,
    owner_id: int,
    application_id: int,
    to_status: ApplicationStatus,
) -> Application:
    """
    Let the owner of the posting mark an application hired or rejected.

    Raises:
        ValidationError: target status is not hired/rejected, or not reachable
        NotFoundError: no such application
        ForbiddenError: caller does not own the posting
    """
    if to_status not in OWNER_DECISIONS:
        raise ValidationError("Status can only be set to hired or rejected")

    result = await db.execute(
        select(Application, JobPosting.user_id)
        .join(JobPosting, Application.job_posting_id == JobPosting.id)
        .where(Application.id == application_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError("Application not found")

    application, posting_owner = row
    if posting_owner != owner_id:
        logger.warning(
            f"User {owner_id} attempted to decide application {application_id} "
            f"on a posting owned by {posting_owner}"
        )
        raise ForbiddenError("Only the owner of the job posting can change this application")

    from_status = application.status
    _transition(application, to_status)
    await _commit(db, "update application status")

    logger.info(
        f"Application status transition: {from_status} → {to_status.value}",
        extra={"application_id": application_id, "owner_id": owner_id},
    )
    return application


async def list_applications(
    db: AsyncSession,
    user_id: int,
    status: Optional[str] = None,
    sort_by_date: Optional[str] = None,
) -> list[Application]:
    """
    The caller's applications with their postings, by creation date.

    Raises:
        ValidationError: unknown status or sort direction
        NoResultsError: nothing matches
    """
    query = (
        select(Application)
        .where(Application.user_id == user_id)
        .options(
            selectinload(Application.job_posting).selectinload(JobPosting.company),
            selectinload(Application.job_posting).selectinload(JobPosting.sectors),
        )
    )

    if status:
        try:
            query = query.where(Application.status == ApplicationStatus(status).value)
        except ValueError:
            raise ValidationError(f"Invalid application status: {status}")

    direction = (sort_by_date or "desc").lower()
    if direction not in ("asc", "desc"):
        raise ValidationError(f"Invalid sort direction: {sort_by_date}")
    if direction == "desc":
        query = query.order_by(Application.created_at.desc(), Application.id.desc())
    else:
        query = query.order_by(Application.created_at.asc(), Application.id.asc())

    result = await db.execute(query)
    applications = list(result.scalars().all())
    if not applications:
        raise NoResultsError("No matching applications")
    return applications
