"""Access/refresh credential pairs: mint, rotate, revoke."""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.core import (
    AccessClaims,
    Clock,
    Settings,
    create_access_token,
    decode_access_token,
    generate_refresh_token,
)
from ideas_api.core.errors import ExpiredError, InternalError, InvalidCredentialsError
from ideas_api.repositories import RefreshTokenRepository, UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class SessionService:
    def __init__(self, db: AsyncSession, settings: Settings, clock: Clock):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.tokens = RefreshTokenRepository(db)
        self.users = UserRepository(db)

    async def mint(self, user_id: str) -> TokenPair:
        """Insert a refresh row and sign an access token. The caller commits.

        The access token is signed only after the insert succeeded, so a failed
        insert never hands out an access token.
        """
        now = self.clock.now()
        refresh_token = generate_refresh_token()
        try:
            await self.tokens.add(refresh_token, user_id, now + self.settings.refresh_ttl)
        except IntegrityError as e:
            raise InternalError("refresh token insert failed") from e
        access_token = create_access_token(user_id, now, self.settings)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate: the old row is deleted and the new one inserted in one transaction."""
        row = await self.tokens.get(refresh_token)
        if row is None:
            logger.info("Refresh token not found")
            raise InvalidCredentialsError("refresh token not found")

        user_id = row.user_id
        if self.clock.now() >= row.expires_at:
            await self.tokens.delete(refresh_token)
            await self.db.commit()
            logger.info("Refresh token for user %s expired", user_id)
            raise ExpiredError("refresh token expired")

        if not await self.tokens.delete(refresh_token):
            logger.info("Refresh token for user %s was rotated concurrently", user_id)
            raise InvalidCredentialsError("refresh token already used")

        if await self.users.get_active_by_id(user_id) is None:
            await self.db.commit()
            logger.warning("Refresh token exists but user %s is gone", user_id)
            raise InvalidCredentialsError("user not found")

        pair = await self.mint(user_id)
        await self.db.commit()
        logger.info("Rotated refresh token for user %s", user_id)
        return pair

    async def logout(self, refresh_token: str) -> None:
        """Idempotent. Access tokens already issued stay valid until they expire."""
        removed = await self.tokens.delete(refresh_token)
        await self.db.commit()
        logger.info("Logout (refresh row removed=%s)", removed)

    async def logout_everywhere(self, user_id: str) -> int:
        removed = await self.tokens.delete_for_user(user_id)
        await self.db.commit()
        logger.info("Logout everywhere for user %s removed %s sessions", user_id, removed)
        return removed

    def authenticate(self, access_token: str) -> AccessClaims:
        return decode_access_token(access_token, self.clock.now(), self.settings)
