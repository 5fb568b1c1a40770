from .user import User, UserRole, ApplicationStatus
from .otp import OtpCode
from .refresh_token import RefreshToken
