from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from jobboard.database import Base


class ApplicationStatus(str, Enum):
    """Valid states for an application"""
    APPLYING = "applying"
    CANCELLED = "cancelled"
    HIRED = "hired"
    REJECTED = "rejected"


class Application(Base):
    __tablename__ = "applications"

    id = Column("application_id", Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    job_posting_id = Column(Integer, ForeignKey("job_postings.job_posting_id"), nullable=False)

    status = Column(String(20), nullable=False, default=ApplicationStatus.APPLYING.value)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    job_posting = relationship("JobPosting")

    __table_args__ = (
        # Re-applying reuses the row, so one row per (user, posting) ever
        UniqueConstraint("user_id", "job_posting_id", name="uq_applications_user_job"),
        Index("idx_applications_user_status", "user_id", "status"),
    )
