"""Pydantic request/response schemas."""

from ideas_api.schemas.auth import (
    VerifyCodeRequest,
    RefreshRequest,
    LogoutRequest,
    TokenPairResponse,
    RateLimitedResponse,
)
from ideas_api.schemas.users import UserResponse

__all__ = [
    "VerifyCodeRequest",
    "RefreshRequest",
    "LogoutRequest",
    "TokenPairResponse",
    "RateLimitedResponse",
    "UserResponse",
]
