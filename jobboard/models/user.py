from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Enum as SQLEnum
import enum

from jobboard.database import Base


class UserRole(str, enum.Enum):
    """User role; the ingestion owner account is an admin."""
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column("user_id", Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)

    # bcrypt digest, never the raw or reversibly encoded password
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)

    role = Column(
        SQLEnum(UserRole, name="user_role", create_type=True),
        nullable=False,
        default=UserRole.USER,
    )

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN
