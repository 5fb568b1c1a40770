import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError
from models.user import User, UserRole, ApplicationStatus

logger = logging.getLogger(__name__)


class UserDirectory:
    """Applicant records: intake, lookups, and the status change that gates login."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter_by(email=email.lower()).first()

    def find_one(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter_by(id=user_id).first()

    def create(
        self,
        name: str,
        email: str,
        role: UserRole = UserRole.applicant,
        application_status: ApplicationStatus = ApplicationStatus.pending,
    ) -> User:
        if self.find_by_email(email):
            raise ConflictError("An application with this email already exists")

        user = User(
            name=name,
            email=email.lower(),
            role=role,
            application_status=application_status,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent submission for the same email
            self.db.rollback()
            raise ConflictError("An application with this email already exists")
        self.db.refresh(user)
        return user

    def submit_application(self, name: str, email: str) -> User:
        """New applicants always start pending with the applicant role."""
        user = self.create(name=name, email=email)
        logger.info(f"Application submitted for {user.email} -> user {user.id}")
        return user

    def update_application_status(self, user_id: str, application_status: ApplicationStatus) -> User:
        """Approving a non-admin applicant also promotes them to a regular user."""
        user = self.find_one(user_id)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")

        user.application_status = application_status
        if application_status == ApplicationStatus.approved and not user.is_admin:
            user.role = UserRole.user

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} application status set to {application_status.value}")
        return user
