from .auth import AuthService
from .identity import IdentityService
from .otp import OtpService
from .sessions import SessionService, TokenPair
from .cleanup import purge_expired, PurgeResult

__all__ = [
    "AuthService",
    "IdentityService",
    "OtpService",
    "SessionService",
    "TokenPair",
    "purge_expired",
    "PurgeResult",
]
