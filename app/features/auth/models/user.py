from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy import Enum as SQLEnum

from app.platform.db.base import BaseModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
    TECHNICAL_REVIEWER = "technical_reviewer"
    JURY_MEMBER = "jury_member"
    DRAGONS_DEN_JUDGE = "dragons_den_judge"


REVIEWER_ROLES = (
    UserRole.TECHNICAL_REVIEWER,
    UserRole.JURY_MEMBER,
    UserRole.DRAGONS_DEN_JUDGE,
)

EVALUATOR_ROLES = (UserRole.ADMIN, *REVIEWER_ROLES)


class User(BaseModel):
    __tablename__ = "users"
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)  # nullable to support OAuth users
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.USER)

    email_verified = Column(Boolean, nullable=False, default=False)
    email_verified_at = Column(DateTime, nullable=True)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
