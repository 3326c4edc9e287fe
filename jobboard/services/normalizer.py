"""
Record normalizer for scraped listings.

Turns one flat scraped record into the structured fields the posting
repository stores:
- multi-value fields (experience, location, employment type) split into lists
- the sector field split into sectors, with its embedded
  "수정일 YY/MM/DD" / "등록일 YY/MM/DD" marker pulled out as a date
- a SHA-256 link hash used as the dedup key
"""
import hashlib
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from jobboard.schemas.job import ScrapedRecord

# "외" is how the source says "etc." at the end of a truncated list
SENTINEL_TOKENS = {"외", "etc.", "etc"}

MULTI_VALUE_SEPARATORS = re.compile(r"[,·]")

MODIFIED_DATE_MARKER = re.compile(
    r"\(?\s*(수정일|등록일|updated|posted)\s*(\d{2})/(\d{2})/(\d{2})\s*\)?",
    re.IGNORECASE,
)


@dataclass
class NormalizedPosting:
    company_name: str
    title: str
    link: str
    link_hash: str
    education_level: Optional[str] = None
    deadline: Optional[str] = None
    salary: Optional[str] = None
    last_modified_date: Optional[date] = None
    experiences: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    sectors: list[str] = field(default_factory=list)
    employment_types: list[str] = field(default_factory=list)


def _clean_tokens(tokens) -> list[str]:
    cleaned = []
    for token in tokens:
        token = token.strip()
        if token and token not in SENTINEL_TOKENS:
            cleaned.append(token)
    return cleaned


def parse_multi_value_field(value: Optional[str]) -> list[str]:
    """Split on commas and middle dots; empty input gives an empty list."""
    if not value:
        return []
    return _clean_tokens(MULTI_VALUE_SEPARATORS.split(value))


def parse_sectors_and_modified_date(value: Optional[str]) -> tuple[list[str], Optional[date]]:
    """
    Split the sector field and extract its modified/posted date marker.

    The year is two digits and lives in the 2000s. A marker whose digits do
    not form a real calendar date is treated as absent.

    Examples:
        "IT, Software (updated 24/03/15)" -> (["IT", "Software"], date(2024, 3, 15))
        "IT, Software"                    -> (["IT", "Software"], None)
    """
    if not value:
        return [], None

    modified_date = None
    match = MODIFIED_DATE_MARKER.search(value)
    if match:
        year = int(match.group(2)) + 2000
        month = int(match.group(3))
        day = int(match.group(4))
        try:
            modified_date = date(year, month, day)
        except ValueError:
            modified_date = None
        else:
            value = value[:match.start()] + value[match.end():]

    return _clean_tokens(value.split(",")), modified_date


def compute_link_hash(link: str) -> str:
    """Hex SHA-256 of the posting link; identical links hash identically."""
    return hashlib.sha256(link.encode("utf-8")).hexdigest()


def normalize_record(record: ScrapedRecord) -> NormalizedPosting:
    """Map one scraped record onto storage-ready fields."""
    sectors, last_modified_date = parse_sectors_and_modified_date(record.sector)
    return NormalizedPosting(
        company_name=record.company_name,
        title=record.title,
        link=record.link,
        link_hash=compute_link_hash(record.link),
        education_level=record.education or None,
        deadline=record.deadline or None,
        salary=record.salary or None,
        last_modified_date=last_modified_date,
        experiences=parse_multi_value_field(record.experience),
        locations=parse_multi_value_field(record.location),
        sectors=sectors,
        employment_types=parse_multi_value_field(record.employment_type),
    )
