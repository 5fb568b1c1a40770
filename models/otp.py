import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, LargeBinary
from core.db.base import Base


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    otp_code = Column(LargeBinary, nullable=False)  # bcrypt hash of the code

    expires_at = Column(DateTime, nullable=False)
    last_sent_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
