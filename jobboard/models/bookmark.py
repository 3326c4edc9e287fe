from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from jobboard.database import Base


class Bookmark(Base):
    """A row exists while the posting is bookmarked; there is no flag column."""
    __tablename__ = "bookmarks"

    id = Column("bookmark_id", Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    job_posting_id = Column(Integer, ForeignKey("job_postings.job_posting_id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    job_posting = relationship("JobPosting")

    __table_args__ = (
        UniqueConstraint("user_id", "job_posting_id", name="uq_bookmarks_user_job"),
    )
