import re

from pydantic import BaseModel, Field, field_validator


class VerifyCodeRequest(BaseModel):
    phone: str
    otp: str
    name: str | None = None

    @field_validator("otp")
    @classmethod
    def validate_otp(cls, value: str) -> str:
        trimmed = (value or "").strip()
        if not re.match(r"^[0-9]{6}$", trimmed):
            raise ValueError("Verification code must be exactly 6 digits")
        return trimmed


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, max_length=128)


class LogoutRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, max_length=128)


class TokenPairResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RateLimitedResponse(BaseModel):
    detail: str
    retry_after: int
