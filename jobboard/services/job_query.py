"""
Query/filter engine for listing postings.

Filters are optional and AND-combined. Association filters are EXISTS
subqueries, so a posting never appears twice and the count needs no DISTINCT.
"""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import ValidationError
from jobboard.models import (
    Company,
    ExperienceLevel,
    JobPosting,
    Location,
    Sector,
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

SORTABLE_COLUMNS = {
    "job_posting_id": JobPosting.id,
    "created_at": JobPosting.created_at,
    "deadline": JobPosting.deadline,
    "views": JobPosting.views,
    "title": JobPosting.title,
    "salary": JobPosting.salary,
    "last_modified_date": JobPosting.last_modified_date,
    "company_name": Company.company_name,
}

DEFAULT_SORT = "created_at DESC"


def parse_sort(sort: Optional[str]) -> list:
    """
    Turn "created_at DESC, views" into ORDER BY clauses.

    Only whitelisted columns are accepted; a ``j.`` table prefix is tolerated
    for clients written against the raw SQL column names.
    """
    clauses = []
    for term in (sort or DEFAULT_SORT).split(","):
        parts = term.split()
        if not parts:
            continue
        if len(parts) > 2:
            raise ValidationError(f"Invalid sort expression: {term.strip()}")

        column_name = parts[0].lower()
        if column_name.startswith("j."):
            column_name = column_name[2:]
        column = SORTABLE_COLUMNS.get(column_name)
        if column is None:
            raise ValidationError(f"Cannot sort by '{parts[0]}'")

        direction = parts[1].upper() if len(parts) == 2 else "ASC"
        if direction not in ("ASC", "DESC"):
            raise ValidationError(f"Invalid sort direction: {parts[1]}")

        clauses.append(column.desc() if direction == "DESC" else column.asc())

    if not clauses:
        raise ValidationError("Empty sort expression")
    return clauses


def build_filters(
    location: Optional[int] = None,
    experience: Optional[int] = None,
    sector: Optional[int] = None,
    keyword: Optional[str] = None,
    company: Optional[str] = None,
) -> list:
    filters = []
    if location:
        filters.append(JobPosting.locations.any(Location.id == location))
    if experience:
        filters.append(JobPosting.experiences.any(ExperienceLevel.id == experience))
    if sector:
        filters.append(JobPosting.sectors.any(Sector.id == sector))
    if keyword:
        # autoescape: % and _ in user input match literally
        filters.append(
            JobPosting.title.icontains(keyword, autoescape=True)
            | Company.company_name.icontains(keyword, autoescape=True)
        )
    if company:
        filters.append(Company.company_name.icontains(company, autoescape=True))
    return filters


async def search_postings(
    db: AsyncSession,
    page: Optional[int] = 1,
    sort: Optional[str] = None,
    location: Optional[int] = None,
    experience: Optional[int] = None,
    sector: Optional[int] = None,
    keyword: Optional[str] = None,
    company: Optional[str] = None,
) -> Page:
    """
    List postings matching every supplied filter, 20 per page.

    Raises:
        ValidationError: page < 1, page past the last page, or a bad sort
        NoResultsError: valid request that matched nothing
    """
    page = validate_page_number(page)
    order_by = parse_sort(sort)
    filters = build_filters(location, experience, sector, keyword, company)

    count_query = (
        select(func.count(JobPosting.id))
        .select_from(JobPosting)
        .join(Company, JobPosting.company_id == Company.id)
        .where(*filters)
    )
    total_items = (await db.execute(count_query)).scalar_one()
    pagination = build_pagination(page, total_items, "No matching job postings")

    id_query = (
        select(JobPosting.id)
        .join(Company, JobPosting.company_id == Company.id)
        .where(*filters)
        .order_by(*order_by, JobPosting.id.asc())
        .offset(page_offset(page))
        .limit(PAGE_SIZE)
    )
    posting_ids = list((await db.execute(id_query)).scalars().all())
    postings = await load_postings(db, posting_ids)

    logger.info(
        f"Listed {len(postings)} jobs (page={page}, total={total_items}, "
        f"keyword={keyword}, company={company}, location={location}, "
        f"experience={experience}, sector={sector})"
    )
    return Page(items=postings, pagination=pagination)


async def search_by_sector_name(
    db: AsyncSession,
    keyword: Optional[str],
    page: Optional[int] = 1,
) -> Page:
    """List postings having a sector whose name contains ``keyword``."""
    page = validate_page_number(page)
    if not keyword or not keyword.strip():
        raise ValidationError("Keyword is required")

    condition = JobPosting.sectors.any(
        Sector.sector_name.icontains(keyword.strip(), autoescape=True)
    )

    total_items = (
        await db.execute(select(func.count(JobPosting.id)).where(condition))
    ).scalar_one()
    pagination = build_pagination(page, total_items, "No job postings for this sector")

    posting_ids = list((
        await db.execute(
            select(JobPosting.id)
            .where(condition)
            .order_by(JobPosting.id.asc())
            .offset(page_offset(page))
            .limit(PAGE_SIZE)
        )
    ).scalars().all())

    return Page(items=await load_postings(db, posting_ids), pagination=pagination)
