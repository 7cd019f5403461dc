"""Application error kinds and their HTTP status.

Authentication failures share one public detail; the subclass (and the
log line that raised it) keeps the real reason server-side.
"""

from fastapi import status

AUTH_FAILED_DETAIL = "Invalid or expired credentials"


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.detail
        super().__init__(self.message)

    @property
    def headers(self) -> dict[str, str] | None:
        return None

    def body(self) -> dict:
        return {"detail": self.detail}


class InvalidPhoneError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid phone number"


class InvalidNameError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Name is required for new users"


class RateLimitedError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    detail = "Too many code requests"

    def __init__(self, retry_after: int):
        self.retry_after = max(int(retry_after), 1)
        super().__init__(f"wait {self.retry_after} seconds before requesting a new code")

    @property
    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}

    def body(self) -> dict:
        return {"detail": self.message, "retry_after": self.retry_after}


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = AUTH_FAILED_DETAIL

    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class InvalidCredentialsError(AuthError):
    pass


class AttemptsExhaustedError(AuthError):
    pass


class ExpiredError(AuthError):
    pass


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class InternalError(AppError):
    pass
