"""Database models"""
from jobboard.models.user import User, UserRole
from jobboard.models.login_history import LoginHistory
from jobboard.models.company import Company
from jobboard.models.reference import (
    EducationLevel,
    ExperienceLevel,
    Location,
    Sector,
    EmploymentType,
)
from jobboard.models.job_posting import (
    JobPosting,
    job_posting_experiences,
    job_posting_locations,
    job_posting_sectors,
    job_posting_employment_types,
)
from jobboard.models.bookmark import Bookmark
from jobboard.models.application import Application, ApplicationStatus

__all__ = [
    "User",
    "UserRole",
    "LoginHistory",
    "Company",
    "EducationLevel",
    "ExperienceLevel",
    "Location",
    "Sector",
    "EmploymentType",
    "JobPosting",
    "job_posting_experiences",
    "job_posting_locations",
    "job_posting_sectors",
    "job_posting_employment_types",
    "Bookmark",
    "Application",
    "ApplicationStatus",
]
