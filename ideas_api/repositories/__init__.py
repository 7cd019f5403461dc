from .otp import OtpRepository, OtpAlreadyExistsError
from .users import UserRepository, PhoneTakenError
from .refresh_tokens import RefreshTokenRepository

__all__ = [
    "OtpRepository",
    "OtpAlreadyExistsError",
    "UserRepository",
    "PhoneTakenError",
    "RefreshTokenRepository",
]
