import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Enum
from core.db.base import Base


class UserRole(str, enum.Enum):
    super_admin = "super_admin"
    company_admin = "company_admin"
    user = "user"
    applicant = "applicant"


class ApplicationStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)

    role = Column(Enum(UserRole), nullable=False, default=UserRole.applicant)
    application_status = Column(
        Enum(ApplicationStatus), nullable=False, default=ApplicationStatus.pending
    )

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.super_admin, UserRole.company_admin)

    @property
    def is_approved(self) -> bool:
        return self.application_status == ApplicationStatus.approved
