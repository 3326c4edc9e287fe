"""
Recommendation strategies.

Four read-only rankings over the posting corpus:
- preference: postings sharing a sector with what the user bookmarked or applied to
- popular: most viewed, equal view counts shuffled on every request
- pay: highest annual salary among postings quoting one in 만원 (10,000 won)
- related: a random handful of postings from the same company or sector
"""
import logging
import re
from typing import Optional

from sqlalchemy import String, func, select, union
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import NoPreferenceSignalError
from jobboard.models import (
    Application,
    Bookmark,
    JobPosting,
    Sector,
    job_posting_sectors,
)
from jobboard.services.job_repository import load_postings
from jobboard.services.pagination import (
    PAGE_SIZE,
    Page,
    build_pagination,
    page_offset,
    validate_page_number,
)

logger = logging.getLogger(__name__)

# 만원 = 10,000 won; annual salaries on the source site are quoted in it
SALARY_UNIT = "만원"
MIN_ANNUAL_SALARY = 1000
SALARY_RANGE_MARKS = ("~", "-")
RELATED_LIMIT = 5

# Whole string: digits with optional thousands commas, then the unit.
# "월급 300만원", "시급 10,000원", "추후 협의" and ranges do not match.
ANNUAL_SALARY_PATTERN = re.compile(r"(\d{1,3}(?:,\d{3})+|\d+)\s*" + SALARY_UNIT)


def parse_annual_salary(salary: Optional[str]) -> Optional[int]:
    """
    Return the salary in 만원 when it is a bare annual figure, else None.

    Examples:
        "5,000만원"  -> 5000
        "5,000 만원" -> 5000
        "월급 300만원" -> None
        "추후 협의"   -> None
    """
    if not salary:
        return None
    match = ANNUAL_SALARY_PATTERN.fullmatch(salary.strip())
    if not match:
        return None
    return int(match.group(1).replace(",", ""))


async def _preferred_sector_ids(db: AsyncSession, user_id: int) -> list[int]:
    touched = union(
        select(Bookmark.job_posting_id).where(Bookmark.user_id == user_id),
        select(Application.job_posting_id).where(Application.user_id == user_id),
    ).subquery()
    result = await db.execute(
        select(job_posting_sectors.c.sector_id)
        .where(job_posting_sectors.c.job_posting_id.in_(select(touched.c.job_posting_id)))
        .distinct()
    )
    return list(result.scalars().all())


async def recommend_by_preference(db: AsyncSession, user_id: int, page: Optional[int] = 1) -> Page:
    """
    Recommend postings in the sectors the user has shown interest in.

    Postings the user already applied to (in any status) are left out.

    Raises:
        NoPreferenceSignalError: no bookmarks or applications with sectors
        NoResultsError: nothing left to recommend
    """
    page = validate_page_number(page)

    sector_ids = await _preferred_sector_ids(db, user_id)
    if not sector_ids:
        raise NoPreferenceSignalError("No bookmarks or applications to base recommendations on")

    condition = (
        JobPosting.sectors.any(Sector.id.in_(sector_ids))
        & JobPosting.id.not_in(
            select(Application.job_posting_id).where(Application.user_id == user_id)
        )
    )

    total_items = (
        await db.execute(select(func.count(JobPosting.id)).where(condition))
    ).scalar_one()
    pagination = build_pagination(page, total_items, "Nothing to recommend")

    posting_ids = list((
        await db.execute(
            select(JobPosting.id)
            .where(condition)
            .order_by(JobPosting.id.asc())
            .offset(page_offset(page))
            .limit(PAGE_SIZE)
        )
    ).scalars().all())

    logger.info(f"Preference recommendations for user {user_id}: {total_items} candidates in {len(sector_ids)} sectors")
    return Page(items=await load_postings(db, posting_ids), pagination=pagination)


async def recommend_popular(db: AsyncSession, page: Optional[int] = 1) -> Page:
    """Most viewed postings first; ties come back in a different order each call."""
    page = validate_page_number(page)
    condition = JobPosting.views > 0

    total_items = (
        await db.execute(select(func.count(JobPosting.id)).where(condition))
    ).scalar_one()
    pagination = build_pagination(page, total_items, "No viewed job postings yet")

    posting_ids = list((
        await db.execute(
            select(JobPosting.id)
            .where(condition)
            .order_by(JobPosting.views.desc(), func.random())
            .offset(page_offset(page))
            .limit(PAGE_SIZE)
        )
    ).scalars().all())

    return Page(items=await load_postings(db, posting_ids), pagination=pagination)


async def salary_candidates(db: AsyncSession) -> list[tuple[int, str]]:
    """
    (id, salary) rows that can hold a bare annual figure.

    Starts with a digit, ends with the unit, no range marks. Only a coarse
    cut: parse_annual_salary has the final word.
    """
    salary = func.trim(JobPosting.salary, type_=String)
    result = await db.execute(
        select(JobPosting.id, JobPosting.salary).where(
            salary.like(f"%{SALARY_UNIT}"),
            func.substr(salary, 1, 1, type_=String).between("0", "9"),
            *(~salary.contains(mark, autoescape=True) for mark in SALARY_RANGE_MARKS),
        )
    )
    return [(posting_id, text) for posting_id, text in result.all()]


async def recommend_by_salary(db: AsyncSession, page: Optional[int] = 1) -> Page:
    """Highest annual salaries first (>= 1000만원), ties by posting id."""
    page = validate_page_number(page)

    ranked = []
    for posting_id, salary in await salary_candidates(db):
        amount = parse_annual_salary(salary)
        if amount is not None and amount >= MIN_ANNUAL_SALARY:
            ranked.append((amount, posting_id))
    ranked.sort(key=lambda item: (-item[0], item[1]))

    pagination = build_pagination(page, len(ranked), "No job postings with an annual salary")

    offset = page_offset(page)
    posting_ids = [posting_id for _, posting_id in ranked[offset:offset + PAGE_SIZE]]
    return Page(items=await load_postings(db, posting_ids), pagination=pagination)


async def related_postings(
    db: AsyncSession,
    posting: JobPosting,
    limit: int = RELATED_LIMIT,
) -> list[JobPosting]:
    """
    Up to ``limit`` postings from the same company or sharing a sector.

    The sample is random; there is no relevance ranking.
    """
    shared_sector_postings = select(job_posting_sectors.c.job_posting_id).where(
        job_posting_sectors.c.sector_id.in_(
            select(job_posting_sectors.c.sector_id).where(
                job_posting_sectors.c.job_posting_id == posting.id
            )
        )
    )
    result = await db.execute(
        select(JobPosting.id)
        .where(
            (JobPosting.company_id == posting.company_id)
            | JobPosting.id.in_(shared_sector_postings),
            JobPosting.id != posting.id,
        )
        .order_by(func.random())
        .limit(limit)
    )
    return await load_postings(db, list(result.scalars().all()))
