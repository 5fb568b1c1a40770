import logging
import math
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

import bcrypt
from sqlalchemy.orm import Session

from core.config import settings
from models.otp import OtpCode

logger = logging.getLogger(__name__)

# Constants
OTP_LENGTH = 6
OTP_TTL = timedelta(minutes=5)
RESEND_COOLDOWN = timedelta(seconds=60)


class OtpService:
    """Persisted one-time passwords, one live record per email."""

    def __init__(
        self,
        db: Session,
        now: Callable[[], datetime] = datetime.utcnow,
        hash_rounds: Optional[int] = None,
    ):
        self.db = db
        self.now = now
        self.hash_rounds = hash_rounds or settings.OTP_HASH_ROUNDS

    def _get(self, email: str) -> Optional[OtpCode]:
        return self.db.query(OtpCode).filter_by(email=email.lower()).first()

    def generate_otp(self) -> str:
        """Generate a 6-digit OTP code, leading zeros allowed."""
        return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"

    def save_otp(self, email: str, otp: str) -> OtpCode:
        """Store a new code for the email, replacing any previous one."""
        now = self.now()
        hashed = bcrypt.hashpw(otp.encode(), bcrypt.gensalt(rounds=self.hash_rounds))

        record = self._get(email)
        if record:
            record.otp_code = hashed
            record.expires_at = now + OTP_TTL
            record.last_sent_at = now
        else:
            record = OtpCode(
                email=email.lower(),
                otp_code=hashed,
                expires_at=now + OTP_TTL,
                last_sent_at=now,
            )
            self.db.add(record)

        self.db.commit()
        return record

    def verify_otp(self, email: str, otp: str) -> bool:
        """
        Check a submitted code. Expiry is checked before the code itself, so an
        expired record is purged even when the code matches. A successful
        verification consumes the record.
        """
        record = self._get(email)
        if not record:
            return False

        if record.is_expired(self.now()):
            self.db.delete(record)
            self.db.commit()
            logger.info(f"Expired OTP purged for {email}")
            return False

        if not self._is_well_formed(otp):
            return False

        if not bcrypt.checkpw(otp.encode(), record.otp_code):
            return False

        self.db.delete(record)
        self.db.commit()
        return True

    @staticmethod
    def _is_well_formed(otp: str) -> bool:
        return isinstance(otp, str) and len(otp) == OTP_LENGTH and otp.isascii() and otp.isdigit()

    def can_resend(self, email: str) -> bool:
        return self.time_until_resend(email) == 0

    def time_until_resend(self, email: str) -> int:
        """Seconds left (rounded up) before another code may be sent."""
        record = self._get(email)
        if not record:
            return 0

        remaining = (record.last_sent_at + RESEND_COOLDOWN - self.now()).total_seconds()
        return math.ceil(remaining) if remaining > 0 else 0

    def delete_expired(self, now: Optional[datetime] = None) -> int:
        now = now or self.now()
        removed = (
            self.db.query(OtpCode)
            .filter(OtpCode.expires_at < now)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed
