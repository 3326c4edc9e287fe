"""Bookmark-related Pydantic schemas."""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobboard.schemas.job import JobSummary


class BookmarkToggle(BaseModel):
    """Body of the toggle request: ``{"jobPostingId": 12}``."""
    job_posting_id: int = Field(gt=0)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookmarkState(BaseModel):
    job_posting_id: int
    bookmarked: bool


class BookmarkItem(JobSummary):
    """A bookmarked posting with the time it was bookmarked."""
    bookmarked_at: datetime
