"""Domain exceptions raised by the auth services."""

from fastapi import HTTPException, status


class AuthServiceException(Exception):
    """Base exception for auth services."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AuthServiceException):
    """Raised when an email or user is not known."""

    pass


class UnauthorizedError(AuthServiceException):
    """Raised for unapproved accounts, bad or expired OTPs and invalid tokens."""

    pass


class ConflictError(AuthServiceException):
    """Raised when an application already exists for an email."""

    pass


class RateLimitedError(AuthServiceException):
    """Raised when an OTP is requested again before the cooldown elapsed."""

    def __init__(self, message: str, wait_time: int):
        super().__init__(message)
        self.wait_time = wait_time


def map_to_http_exception(exc: AuthServiceException) -> HTTPException:
    """Map service exceptions to HTTP exceptions."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    elif isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    elif isinstance(exc, UnauthorizedError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    elif isinstance(exc, RateLimitedError):
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"message": exc.message, "wait_time": exc.wait_time},
            headers={"Retry-After": str(exc.wait_time)},
        )
    else:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )
