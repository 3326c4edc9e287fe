"""
Batch ingestion of scraped listings.

Loads a JSON array of scraped records (from a file or over HTTP), normalizes
each one and stores it through the posting repository. Every record gets its
own transaction: a bad record is logged and skipped, the rest of the batch
still lands. Duplicate links are skipped, first one wins.
"""
import json
import logging
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import aiohttp
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.config import Settings
from jobboard.errors import JobBoardError, StorageError, ValidationError
from jobboard.models import User, UserRole
from jobboard.schemas.job import ScrapedRecord
from jobboard.services.job_repository import ingest_posting
from jobboard.services.normalizer import normalize_record
from jobboard.services.security import hash_password

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 60


@dataclass
class IngestionReport:
    inserted: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.inserted + self.skipped + self.failed


async def resolve_owner(db: AsyncSession, settings: Settings) -> int:
    """
    Return the id of the account that owns ingested postings.

    The account is created as an admin on first use. It has no usable
    password: the stored digest is of a random token nobody knows.
    """
    result = await db.execute(select(User.id).where(User.email == settings.ingest_owner_email))
    owner_id = result.scalar_one_or_none()
    if owner_id is not None:
        return owner_id

    owner = User(
        email=settings.ingest_owner_email,
        name="ingest",
        password_hash=hash_password(secrets.token_urlsafe(32)),
        role=UserRole.ADMIN,
    )
    db.add(owner)
    await db.commit()
    await db.refresh(owner)
    logger.info(f"Created ingestion owner account {owner.id} ({owner.email})")
    return owner.id


def parse_records(payload: Any) -> list[dict]:
    """Accept a bare JSON array or an object with a ``data`` array."""
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        raise ValidationError("Expected a JSON array of scraped records")
    return payload


async def fetch_records(url: str) -> list[dict]:
    """GET a JSON array of records over HTTP."""
    timeout = aiohttp.ClientTimeout(total=FETCH_TIMEOUT_SECONDS)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url) as response:
                response.raise_for_status()
                payload = await response.json(content_type=None)
    except (aiohttp.ClientError, ValueError) as e:
        logger.error(f"Failed to fetch records from {url}: {str(e)}")
        raise ValidationError(f"Could not load records from {url}", detail=str(e)) from e
    logger.info(f"Fetched records from {url}")
    return parse_records(payload)


async def load_records(source: str) -> list[dict]:
    """Load records from an http(s) URL or a local JSON file."""
    if source.startswith(("http://", "https://")):
        return await fetch_records(source)

    path = Path(source)
    if not path.is_file():
        raise ValidationError(f"No such file: {source}")
    with path.open(encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"{source} is not valid JSON", detail=str(e)) from e
    return parse_records(payload)


async def ingest_records(
    db: AsyncSession,
    records: Iterable[dict],
    owner_id: int,
) -> IngestionReport:
    """Normalize and store each record in its own transaction."""
    report = IngestionReport()

    for index, raw in enumerate(records):
        try:
            record = ScrapedRecord.model_validate(raw)
            normalized = normalize_record(record)
        except SchemaValidationError as e:
            report.failed += 1
            report.errors.append(f"record {index}: {e.error_count()} invalid field(s)")
            logger.warning(f"Skipped malformed record {index}: {e}")
            continue

        try:
            posting_id = await ingest_posting(db, normalized, owner_id)
            await db.commit()
        except (SQLAlchemyError, JobBoardError) as e:
            await db.rollback()
            report.failed += 1
            report.errors.append(f"record {index}: {str(e)}")
            logger.error(f"Error ingesting record {index} ({normalized.link}): {str(e)}")
            continue

        if posting_id is None:
            report.skipped += 1
        else:
            report.inserted += 1

    logger.info(
        f"Ingestion finished: {report.inserted} inserted, {report.skipped} skipped "
        f"(duplicate link), {report.failed} failed"
    )
    return report


async def ingest_source(db: AsyncSession, source: str, settings: Settings) -> IngestionReport:
    """Load ``source`` and ingest every record in it."""
    records = await load_records(source)
    try:
        owner_id = await resolve_owner(db, settings)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StorageError("Could not resolve the ingestion owner", detail=str(e)) from e
    return await ingest_records(db, records, owner_id)
