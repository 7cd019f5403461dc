import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import bcrypt
from jose import JWTError, jwt

from ideas_api.core.config import Settings
from ideas_api.core.errors import ExpiredError, InvalidCredentialsError

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
REFRESH_TOKEN_BYTES = 32  # 256 bits


@dataclass(frozen=True)
class AccessClaims:
    user_id: str
    issued_at: datetime
    expires_at: datetime


def generate_code() -> str:
    """Uniform 6-digit decimal code from the OS CSPRNG."""
    return str(secrets.randbelow(10**CODE_LENGTH)).zfill(CODE_LENGTH)


def hash_code(code: str, cost: int) -> str:
    return bcrypt.hashpw(code.encode("utf-8"), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_code(code: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(code.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        logger.warning("Stored OTP hash is malformed")
        return False


def generate_refresh_token() -> str:
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def create_access_token(user_id: str, now: datetime, settings: Settings) -> str:
    issued_at = int(now.timestamp())
    to_encode = {
        "user_id": str(user_id),
        "iat": issued_at,
        "exp": issued_at + settings.access_ttl_seconds,
        # distinguishes tokens minted for one user within the same second
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, now: datetime, settings: Settings) -> AccessClaims:
    """Verify signature and expiry. No store lookup is made.

    Expiry is checked against ``now`` rather than the wall clock so the
    injected clock governs it.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError as e:
        raise InvalidCredentialsError(f"access token rejected: {e}") from e

    user_id = payload.get("user_id")
    exp = payload.get("exp")
    iat = payload.get("iat")
    if not isinstance(exp, (int, float)) or not isinstance(iat, (int, float)):
        raise InvalidCredentialsError("access token lacks iat/exp")
    try:
        user_id = str(uuid.UUID(str(user_id)))
    except ValueError as e:
        raise InvalidCredentialsError("access token carries a malformed user_id") from e

    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    if now >= expires_at:
        raise ExpiredError("access token expired")
    return AccessClaims(
        user_id=user_id,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
        expires_at=expires_at,
    )
