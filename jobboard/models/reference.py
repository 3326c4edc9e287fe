"""
Lookup tables referenced by job postings.

Each table is an append-only set keyed by its unique label column; rows are
created on first reference and never deleted.
"""
from sqlalchemy import Column, String, Integer

from jobboard.database import Base


class EducationLevel(Base):
    __tablename__ = "educations"

    id = Column("education_id", Integer, primary_key=True, autoincrement=True)
    education_level = Column(String(255), nullable=False, unique=True)


class ExperienceLevel(Base):
    __tablename__ = "experiences"

    id = Column("experience_id", Integer, primary_key=True, autoincrement=True)
    experience_level = Column(String(255), nullable=False, unique=True)


class Location(Base):
    __tablename__ = "locations"

    id = Column("location_id", Integer, primary_key=True, autoincrement=True)
    location_name = Column(String(255), nullable=False, unique=True)


class Sector(Base):
    __tablename__ = "sectors"

    id = Column("sector_id", Integer, primary_key=True, autoincrement=True)
    sector_name = Column(String(255), nullable=False, unique=True)


class EmploymentType(Base):
    __tablename__ = "employment_types"

    id = Column("employment_type_id", Integer, primary_key=True, autoincrement=True)
    employment_type_name = Column(String(255), nullable=False, unique=True)
