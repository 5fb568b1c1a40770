import logging

from fastapi import APIRouter, Depends, HTTPException
from google.oauth2 import id_token
from google.auth.transport import requests as grequests
from sqlalchemy.orm import Session

from core.config import settings
from core.db.dependencies import get_db
from core.mail import MailService
from models.user import User
from .schemas import (
    LoginRequest,
    ResendOtpRequest,
    VerifyOtpRequest,
    GoogleTokenRequest,
    RefreshTokenRequest,
    UserOut,
    ApplicationCreate,
    ApplicationSubmitted,
    ApplicationStatusUpdate,
    AuthResponse,
    OtpSentResponse,
    OtpResentResponse,
    MessageResponse,
    LogoutAllResponse,
)
from .services import AuthService
from .users import UserDirectory
from .utils import get_current_user, get_current_admin

router = APIRouter(prefix="/auth", tags=["Auth"])
application_router = APIRouter(prefix="/applications", tags=["Applications"])
user_router = APIRouter(prefix="/users", tags=["Users"])

logger = logging.getLogger(__name__)


def get_mail_service() -> MailService:
    return MailService()


def get_auth_service(
    db: Session = Depends(get_db),
    mailer: MailService = Depends(get_mail_service),
) -> AuthService:
    return AuthService(db, mailer)


### OTP ROUTES ###

@router.post("/login", response_model=OtpSentResponse, response_model_exclude_none=True)
def login(data: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.login_with_email(data.email)


@router.post("/verify-otp", response_model=AuthResponse)
def verify_otp(data: VerifyOtpRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.verify_otp(data.email, data.otp)


@router.post("/resend-otp", response_model=OtpResentResponse, response_model_exclude_none=True)
def resend_otp(data: ResendOtpRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.resend_otp(data.email)


### GOOGLE ROUTES ###

@router.post("/google", response_model=AuthResponse)
def google_login(payload: GoogleTokenRequest, auth: AuthService = Depends(get_auth_service)):
    # Without a client ID google-auth skips the audience check entirely
    if not settings.GOOGLE_CLIENT_ID:
        logger.error("Google sign-in requested but GOOGLE_CLIENT_ID is not configured")
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")

    try:
        idinfo = id_token.verify_oauth2_token(
            payload.id_token,
            grequests.Request(),
            settings.GOOGLE_CLIENT_ID,
        )
    except ValueError as e:
        logger.warning(f"Rejected Google ID token: {e}")
        raise HTTPException(status_code=401, detail="Invalid ID token")

    email = idinfo.get("email")
    if not email:
        raise HTTPException(status_code=400, detail="Email not found in token")
    if idinfo.get("email_verified") is not True:
        raise HTTPException(status_code=401, detail="Google email is not verified")

    user = auth.validate_google_user(email)
    return auth.login_with_user(user)


### TOKEN ROUTES ###

@router.post("/refresh", response_model=AuthResponse)
def refresh(data: RefreshTokenRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.refresh(data.refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout(data: RefreshTokenRequest, auth: AuthService = Depends(get_auth_service)):
    return auth.logout(data.refresh_token)


@router.post("/logout-all", response_model=LogoutAllResponse)
def logout_all(
    current_user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    return auth.logout_all(current_user)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user


### APPLICATION ROUTES ###

@application_router.post("", response_model=ApplicationSubmitted, status_code=201)
def submit_application(data: ApplicationCreate, db: Session = Depends(get_db)):
    user = UserDirectory(db).submit_application(name=data.name, email=data.email)
    return {
        "message": "Application submitted successfully. It will be reviewed and processed.",
        "user": user,
    }


### USER MANAGEMENT ROUTES ###

@user_router.patch("/{user_id}/status", response_model=UserOut)
def update_application_status(
    user_id: str,
    data: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    logger.info(f"Admin {current_admin.id} sets user {user_id} to {data.application_status.value}")
    return UserDirectory(db).update_application_status(user_id, data.application_status)
