from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from models.user import UserRole, ApplicationStatus

# -----------------------------
#  Requests
# -----------------------------

class LoginRequest(BaseModel):
    email: EmailStr

class ResendOtpRequest(BaseModel):
    email: EmailStr

class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str

    @field_validator("otp", mode="before")
    @classmethod
    def strip_otp(cls, value):
        return value.strip() if isinstance(value, str) else value

class GoogleTokenRequest(BaseModel):
    id_token: str

class RefreshTokenRequest(BaseModel):
    refresh_token: str

# -----------------------------
#  Responses
# -----------------------------

class UserOut(BaseModel):
    id: str
    name: str
    email: EmailStr
    role: UserRole
    application_status: ApplicationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut

class OtpSentResponse(BaseModel):
    message: str
    otp: Optional[str] = None

class OtpResentResponse(BaseModel):
    message: str
    wait_time: Optional[int] = None
    otp: Optional[str] = None

class MessageResponse(BaseModel):
    message: str

class LogoutAllResponse(BaseModel):
    message: str
    revoked: int

# -----------------------------
#  Applications & User Management
# -----------------------------

class ApplicationCreate(BaseModel):
    name: str
    email: EmailStr

    @field_validator("name")
    @classmethod
    def name_must_be_valid(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        if len(value) > 200:
            raise ValueError("Name must be under 200 characters")
        return value

class ApplicationSubmitted(BaseModel):
    message: str
    user: UserOut

class ApplicationStatusUpdate(BaseModel):
    application_status: ApplicationStatus
