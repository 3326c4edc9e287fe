"""
Reference-data upsert layer.

Resolves a dimension label (company, sector, location, ...) to its id in a
single INSERT ... ON CONFLICT ... RETURNING statement, so two writers asking
for the same label can never create two rows. Junction rows are written with
ON CONFLICT DO NOTHING, which makes re-linking a no-op.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from sqlalchemy import Column, Table, delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.errors import StorageError, ValidationError
from jobboard.models import (
    Company,
    EducationLevel,
    ExperienceLevel,
    Location,
    Sector,
    EmploymentType,
    job_posting_experiences,
    job_posting_locations,
    job_posting_sectors,
    job_posting_employment_types,
)

logger = logging.getLogger(__name__)


class ReferenceKind(str, Enum):
    COMPANY = "company"
    EDUCATION = "education"
    EXPERIENCE = "experience"
    LOCATION = "location"
    SECTOR = "sector"
    EMPLOYMENT_TYPE = "employment_type"


@dataclass(frozen=True)
class _Dimension:
    model: type
    label: Column
    junction: Optional[Table] = None
    junction_key: Optional[str] = None


DIMENSIONS: dict[ReferenceKind, _Dimension] = {
    ReferenceKind.COMPANY: _Dimension(Company, Company.company_name),
    ReferenceKind.EDUCATION: _Dimension(EducationLevel, EducationLevel.education_level),
    ReferenceKind.EXPERIENCE: _Dimension(
        ExperienceLevel, ExperienceLevel.experience_level,
        job_posting_experiences, "experience_id",
    ),
    ReferenceKind.LOCATION: _Dimension(
        Location, Location.location_name,
        job_posting_locations, "location_id",
    ),
    ReferenceKind.SECTOR: _Dimension(
        Sector, Sector.sector_name,
        job_posting_sectors, "sector_id",
    ),
    ReferenceKind.EMPLOYMENT_TYPE: _Dimension(
        EmploymentType, EmploymentType.employment_type_name,
        job_posting_employment_types, "employment_type_id",
    ),
}


def dialect_insert(db: AsyncSession, target):
    """Return the dialect-specific insert() that supports ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(target)
    if dialect == "sqlite":
        return sqlite.insert(target)
    raise StorageError(f"Unsupported database dialect for upserts: {dialect}")


async def get_or_create(db: AsyncSession, kind: ReferenceKind, label: str) -> int:
    """
    Resolve ``label`` to its dimension id, inserting it on first use.

    The no-op DO UPDATE makes RETURNING yield the existing row's id on
    conflict, so this is one round trip either way.
    """
    label = (label or "").strip()
    if not label:
        raise ValidationError(f"Empty {kind.value} label")

    dimension = DIMENSIONS[kind]
    insert_stmt = dialect_insert(db, dimension.model).values({dimension.label.key: label})
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=[dimension.label.key],
        set_={dimension.label.key: insert_stmt.excluded[dimension.label.key]},
    ).returning(dimension.model.id)

    result = await db.execute(stmt)
    return result.scalar_one()


async def link_associations(
    db: AsyncSession,
    posting_id: int,
    kind: ReferenceKind,
    labels: Iterable[str],
) -> list[int]:
    """Resolve each label and link it to the posting; repeated links are no-ops."""
    dimension = DIMENSIONS[kind]
    if dimension.junction is None:
        raise ValueError(f"{kind.value} is not a many-to-many dimension")

    linked_ids = []
    for label in labels:
        if not label or not label.strip():
            continue
        dimension_id = await get_or_create(db, kind, label)
        stmt = dialect_insert(db, dimension.junction).values(
            {"job_posting_id": posting_id, dimension.junction_key: dimension_id}
        ).on_conflict_do_nothing()
        await db.execute(stmt)
        linked_ids.append(dimension_id)

    logger.debug(f"Linked {len(linked_ids)} {kind.value} rows to posting {posting_id}")
    return linked_ids


async def replace_associations(
    db: AsyncSession,
    posting_id: int,
    kind: ReferenceKind,
    labels: Iterable[str],
) -> list[int]:
    """Drop every existing link of this kind for the posting, then link ``labels``."""
    dimension = DIMENSIONS[kind]
    if dimension.junction is None:
        raise ValueError(f"{kind.value} is not a many-to-many dimension")

    await db.execute(
        delete(dimension.junction).where(dimension.junction.c.job_posting_id == posting_id)
    )
    return await link_associations(db, posting_id, kind, labels)


async def unlink_all(db: AsyncSession, posting_id: int) -> None:
    """Remove every junction row that points at the posting."""
    for dimension in DIMENSIONS.values():
        if dimension.junction is not None:
            await db.execute(
                delete(dimension.junction).where(dimension.junction.c.job_posting_id == posting_id)
            )
