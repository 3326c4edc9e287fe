"""Application-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobboard.models import Application, ApplicationStatus


class ApplyRequest(BaseModel):
    job_posting_id: int = Field(gt=0)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusUpdateRequest(BaseModel):
    """Decision by the owner of the posting."""
    status: ApplicationStatus


class ApplicationResponse(BaseModel):
    """Schema for application response."""
    application_id: int
    job_posting_id: int
    status: str
    created_at: datetime
    updated_at: datetime


class ApplicationListItem(ApplicationResponse):
    """Application together with the posting it was made to."""
    title: Optional[str] = None
    company_name: Optional[str] = None
    link: Optional[str] = None
    deadline: Optional[str] = None
    sectors: list[str] = []


def application_response(application: Application) -> ApplicationResponse:
    return ApplicationResponse(
        application_id=application.id,
        job_posting_id=application.job_posting_id,
        status=application.status,
        created_at=application.created_at,
        updated_at=application.updated_at,
    )


def application_list_item(application: Application) -> ApplicationListItem:
    posting = application.job_posting
    return ApplicationListItem(
        **application_response(application).model_dump(),
        title=posting.title if posting else None,
        company_name=posting.company_name if posting else None,
        link=posting.link if posting else None,
        deadline=posting.deadline if posting else None,
        sectors=posting.sector_names if posting else [],
    )
