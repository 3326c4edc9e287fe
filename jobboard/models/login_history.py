from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, ForeignKey

from jobboard.database import Base


class LoginHistory(Base):
    __tablename__ = "login_history"

    id = Column("login_id", Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    login_time = Column(DateTime, default=datetime.utcnow, nullable=False)
