from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.core import AccessClaims, Clock, Settings, get_clock, get_settings, decode_access_token
from ideas_api.db.session import async_session
from ideas_api.providers import SmsProvider, get_sms_provider
from ideas_api.services import AuthService, SessionService

security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_auth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
    sms: Annotated[SmsProvider, Depends(get_sms_provider)],
) -> AuthService:
    return AuthService(db, settings, clock, sms)


def get_session_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> SessionService:
    return SessionService(db, settings, clock)


async def get_access_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> AccessClaims:
    """Cryptographic check only: no store lookup."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_access_token(credentials.credentials, clock.now(), settings)


async def get_current_user_id(
    claims: Annotated[AccessClaims, Depends(get_access_claims)],
) -> str:
    return claims.user_id
