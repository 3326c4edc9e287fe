"""Company dimension: one row per distinct company name."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer

from jobboard.database import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column("company_id", Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(255), nullable=False, unique=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
