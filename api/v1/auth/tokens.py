import logging
from datetime import datetime
from typing import Callable, Optional

from jose import jwt, JWTError
from sqlalchemy.orm import Session

from models.refresh_token import RefreshToken
from models.user import User

logger = logging.getLogger(__name__)


class TokenService:
    """Bookkeeping for issued refresh tokens."""

    def __init__(self, db: Session, now: Callable[[], datetime] = datetime.utcnow):
        self.db = db
        self.now = now

    def save_token(self, token: str, user: User) -> RefreshToken:
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            claims = {}
        exp = claims.get("exp")
        expiry = datetime.utcfromtimestamp(exp) if exp else None

        record = RefreshToken(
            token=token,
            is_revoked=False,
            token_expiry=expiry,
            user_id=user.id,
        )
        self.db.add(record)
        self.db.commit()
        return record

    def is_token_revoked(self, token: str) -> bool:
        """A token we never stored counts as not revoked."""
        record = self.db.query(RefreshToken).filter_by(token=token).first()
        return bool(record and record.is_revoked)

    def revoke_token(self, token: str) -> int:
        revoked = (
            self.db.query(RefreshToken)
            .filter_by(token=token, is_revoked=False)
            .update({RefreshToken.is_revoked: True}, synchronize_session=False)
        )
        self.db.commit()
        if revoked:
            logger.info("Refresh token revoked")
        return revoked

    def revoke_all_for_user(self, user_id: str) -> int:
        revoked = (
            self.db.query(RefreshToken)
            .filter_by(user_id=user_id, is_revoked=False)
            .update({RefreshToken.is_revoked: True}, synchronize_session=False)
        )
        self.db.commit()
        if revoked:
            logger.info(f"Revoked {revoked} refresh tokens for user {user_id}")
        return revoked

    def delete_expired_tokens(self, now: Optional[datetime] = None) -> int:
        now = now or self.now()
        removed = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token_expiry.isnot(None), RefreshToken.token_expiry < now)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed
