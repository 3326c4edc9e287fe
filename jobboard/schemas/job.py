"""Job-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobboard.models.job_posting import JobPosting


class ScrapedRecord(BaseModel):
    """
    One listing as produced by the scraper.

    The scraper emits Korean field labels; English field names are accepted
    too so fixtures stay readable.
    """
    company_name: str = Field(alias="회사명")
    title: str = Field(alias="제목")
    link: str = Field(alias="링크")
    education: Optional[str] = Field(None, alias="학력")
    sector: Optional[str] = Field(None, alias="직무분야")
    deadline: Optional[str] = Field(None, alias="마감일")
    salary: Optional[str] = Field(None, alias="급여")
    experience: Optional[str] = Field(None, alias="경력")
    location: Optional[str] = Field(None, alias="지역")
    employment_type: Optional[str] = Field(None, alias="고용형태")

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class JobCreate(BaseModel):
    """Schema for creating a job posting by hand."""
    company_name: str = Field(min_length=1)
    title: str = Field(min_length=1)
    link: str = Field(min_length=1)
    education_level: str = Field(min_length=1)
    deadline: str = Field(min_length=1)
    location_names: list[str] = Field(min_length=1)
    sector_names: list[str] = Field(min_length=1)
    employment_type: str = Field(min_length=1)
    salary: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobUpdate(BaseModel):
    """Sparse update: only the fields that are sent (and not null) change."""
    company_name: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None
    education_level: Optional[str] = None
    deadline: Optional[str] = None
    location_names: Optional[list[str]] = None
    sector_names: Optional[list[str]] = None
    employment_type: Optional[str] = None
    salary: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def changes(self) -> dict:
        return {
            field: value
            for field, value in self.model_dump(exclude_none=True).items()
            if value != "" and value != []
        }


class JobSummary(BaseModel):
    """Posting with its denormalized association names."""
    job_posting_id: int
    title: str
    company_name: Optional[str] = None
    salary: Optional[str] = None
    link: str
    deadline: Optional[str] = None
    views: int = 0
    locations: list[str] = []
    sectors: list[str] = []
    employment_types: list[str] = []

    @classmethod
    def from_posting(cls, posting: JobPosting) -> "JobSummary":
        return cls(
            job_posting_id=posting.id,
            title=posting.title,
            company_name=posting.company_name,
            salary=posting.salary,
            link=posting.link,
            deadline=posting.deadline,
            views=posting.views or 0,
            locations=posting.location_names,
            sectors=posting.sector_names,
            employment_types=posting.employment_type_names,
        )


class JobDetail(JobSummary):
    """Full posting as shown on the detail page."""
    owner_id: Optional[int] = None
    education_level: Optional[str] = None
    experiences: list[str] = []
    created_at: Optional[datetime] = None
    last_modified_date: Optional[datetime] = None

    @classmethod
    def from_posting(cls, posting: JobPosting) -> "JobDetail":
        summary = JobSummary.from_posting(posting)
        return cls(
            **summary.model_dump(),
            owner_id=posting.user_id,
            education_level=posting.education_level,
            experiences=posting.experience_levels,
            created_at=posting.created_at,
            last_modified_date=posting.last_modified_date,
        )


class RelatedJob(BaseModel):
    job_posting_id: int
    title: str
    company_name: Optional[str] = None
    salary: Optional[str] = None
    link: str
    deadline: Optional[str] = None
    sectors: list[str] = []

    @classmethod
    def from_posting(cls, posting: JobPosting) -> "RelatedJob":
        return cls(
            job_posting_id=posting.id,
            title=posting.title,
            company_name=posting.company_name,
            salary=posting.salary,
            link=posting.link,
            deadline=posting.deadline,
            sectors=posting.sector_names,
        )


class JobDetailData(BaseModel):
    detail: JobDetail
    related: list[RelatedJob]


class JobCreated(BaseModel):
    job_posting_id: int
