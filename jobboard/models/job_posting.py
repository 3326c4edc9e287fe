from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship

from jobboard.database import Base


# Junction tables: the composite primary key makes a repeated link a no-op
job_posting_experiences = Table(
    "job_posting_experiences",
    Base.metadata,
    Column("job_posting_id", Integer, ForeignKey("job_postings.job_posting_id"), primary_key=True),
    Column("experience_id", Integer, ForeignKey("experiences.experience_id"), primary_key=True),
)

job_posting_locations = Table(
    "job_posting_locations",
    Base.metadata,
    Column("job_posting_id", Integer, ForeignKey("job_postings.job_posting_id"), primary_key=True),
    Column("location_id", Integer, ForeignKey("locations.location_id"), primary_key=True),
)

job_posting_sectors = Table(
    "job_posting_sectors",
    Base.metadata,
    Column("job_posting_id", Integer, ForeignKey("job_postings.job_posting_id"), primary_key=True),
    Column("sector_id", Integer, ForeignKey("sectors.sector_id"), primary_key=True),
)

job_posting_employment_types = Table(
    "job_posting_employment_types",
    Base.metadata,
    Column("job_posting_id", Integer, ForeignKey("job_postings.job_posting_id"), primary_key=True),
    Column("employment_type_id", Integer, ForeignKey("employment_types.employment_type_id"), primary_key=True),
)


class JobPosting(Base):
    __tablename__ = "job_postings"

    id = Column("job_posting_id", Integer, primary_key=True, autoincrement=True)

    # Owner: the ingestion account for scraped rows, the author otherwise
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=True, index=True)

    # Source & dedup
    title = Column(String(500), nullable=False)
    link = Column(String(1000), nullable=False, unique=True)
    link_hash = Column(String(64), nullable=False, unique=True, index=True)

    # Dimension references
    company_id = Column(Integer, ForeignKey("companies.company_id"), nullable=False, index=True)
    education_id = Column(Integer, ForeignKey("educations.education_id"), nullable=True)
    employment_type_id = Column(Integer, ForeignKey("employment_types.employment_type_id"), nullable=True)

    # Free text as scraped: "5,000만원", "추후 협의", "~ 12/31(화)" ...
    salary = Column(String(255), nullable=True)
    deadline = Column(String(100), nullable=True)

    views = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    last_modified_date = Column(DateTime, nullable=True)

    # Relationships (read side; writes go through services.reference_data)
    company = relationship("Company")
    education = relationship("EducationLevel")
    employment_type = relationship("EmploymentType")
    experiences = relationship(
        "ExperienceLevel", secondary=job_posting_experiences, order_by="ExperienceLevel.id"
    )
    locations = relationship(
        "Location", secondary=job_posting_locations, order_by="Location.id"
    )
    sectors = relationship(
        "Sector", secondary=job_posting_sectors, order_by="Sector.id"
    )
    employment_types = relationship(
        "EmploymentType", secondary=job_posting_employment_types, order_by="EmploymentType.id"
    )

    @property
    def company_name(self) -> str | None:
        return self.company.company_name if self.company else None

    @property
    def education_level(self) -> str | None:
        return self.education.education_level if self.education else None

    @property
    def location_names(self) -> list[str]:
        return [location.location_name for location in self.locations]

    @property
    def sector_names(self) -> list[str]:
        return [sector.sector_name for sector in self.sectors]

    @property
    def employment_type_names(self) -> list[str]:
        return [et.employment_type_name for et in self.employment_types]

    @property
    def experience_levels(self) -> list[str]:
        return [exp.experience_level for exp in self.experiences]
