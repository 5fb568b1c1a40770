import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from jose import JWTError
from sqlalchemy.orm import Session

from core.config import settings
from core.exceptions import NotFoundError, UnauthorizedError, RateLimitedError
from core.mail import MailService
from models.user import User
from .otp import OtpService, RESEND_COOLDOWN
from .tokens import TokenService
from .users import UserDirectory
from .utils import create_access_token, create_refresh_token, decode_token, REFRESH_TOKEN_TYPE

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "application_status": user.application_status,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


class AuthService:
    """
    Coordinates the login flows. Holds no state of its own beyond the
    request-scoped collaborators it is built with.

    OTP login:    login_with_email -> (resend_otp)* -> verify_otp
    Google login: validate_google_user -> login_with_user
    """

    def __init__(
        self,
        db: Session,
        mailer: Optional[MailService] = None,
        now: Callable[[], datetime] = datetime.utcnow,
        expose_otp: Optional[bool] = None,
    ):
        self.db = db
        self.mailer = mailer or MailService()
        self.users = UserDirectory(db)
        self.otp_service = OtpService(db, now=now)
        self.token_service = TokenService(db, now=now)
        # Codes are echoed back in the response outside production only
        self.expose_otp = (not settings.is_production) if expose_otp is None else expose_otp

    ### OTP FLOW ###

    def login_with_email(self, email: str) -> Dict[str, Any]:
        user = self.users.find_by_email(email)
        if not user:
            raise NotFoundError("User with this email not found")

        if not user.is_approved:
            raise UnauthorizedError("Account not approved yet")

        self._check_resend_allowed(user.email)
        otp = self._issue_otp(user)

        response = {"message": "OTP sent to your email"}
        if self.expose_otp:
            response["otp"] = otp
        return response

    def verify_otp(self, email: str, otp: str) -> Dict[str, Any]:
        if not self.otp_service.verify_otp(email, otp):
            raise UnauthorizedError("Invalid or expired OTP")

        user = self.users.find_by_email(email)
        if not user:
            raise UnauthorizedError("User no longer exists")

        return self.login_with_user(user)

    def resend_otp(self, email: str) -> Dict[str, Any]:
        # Approval is deliberately not re-checked here; see DESIGN.md.
        user = self.users.find_by_email(email)
        if not user:
            raise NotFoundError("User with this email not found")

        self._check_resend_allowed(user.email)
        otp = self._issue_otp(user)

        response = {
            "message": "OTP resent to your email",
            "wait_time": int(RESEND_COOLDOWN.total_seconds()),
        }
        if self.expose_otp:
            response["otp"] = otp
        return response

    def _check_resend_allowed(self, email: str) -> None:
        if not self.otp_service.can_resend(email):
            wait_time = self.otp_service.time_until_resend(email)
            raise RateLimitedError(
                f"Please wait {wait_time} seconds before requesting a new OTP",
                wait_time=wait_time,
            )

    def _issue_otp(self, user: User) -> str:
        otp = self.otp_service.generate_otp()
        self.otp_service.save_otp(user.email, otp)

        # A broken mail provider must not lock users out; the code stays valid.
        try:
            sent = self.mailer.send_otp_email(user.email, user.name, otp)
        except Exception:
            logger.exception(f"OTP email to {user.email} failed")
            sent = False

        if sent:
            logger.info(f"OTP sent to {user.email}")
        else:
            logger.error(f"OTP for {user.email} issued but email was not delivered")
            if self.expose_otp:
                logger.debug(f"OTP for {user.email}: {otp}")
        return otp

    ### GOOGLE FLOW ###

    def validate_google_user(self, email: str) -> User:
        user = self.users.find_by_email(email)
        if not user:
            raise UnauthorizedError("Email not found in applicant database")

        if not user.is_approved:
            raise UnauthorizedError("Account not approved yet")

        return user

    ### TOKENS ###

    def login_with_user(self, user: User) -> Dict[str, Any]:
        payload = {"sub": user.id, "email": user.email, "role": user.role.value}
        access_token = create_access_token(payload)
        refresh_token = create_refresh_token(payload)

        self.token_service.save_token(refresh_token, user)

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
            "user": serialize_user(user),
        }

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """Exchange a refresh token for a new pair, revoking the old one."""
        try:
            payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        except JWTError:
            raise UnauthorizedError("Invalid refresh token")

        if self.token_service.is_token_revoked(refresh_token):
            raise UnauthorizedError("Token has been revoked")

        user = self.users.find_one(payload.get("sub"))
        if not user:
            raise UnauthorizedError("User no longer exists")

        self.token_service.revoke_token(refresh_token)
        return self.login_with_user(user)

    def logout(self, refresh_token: str) -> Dict[str, Any]:
        self.token_service.revoke_token(refresh_token)
        return {"message": "Logged out"}

    def logout_all(self, user: User) -> Dict[str, Any]:
        revoked = self.token_service.revoke_all_for_user(user.id)
        return {"message": "Logged out from all sessions", "revoked": revoked}
