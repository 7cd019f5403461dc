from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.db.models import UserRefreshToken


class RefreshTokenRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, token: str, user_id: str, expires_at: datetime) -> UserRefreshToken:
        row = UserRefreshToken(refresh_token=token, user_id=user_id, expires_at=expires_at)
        self.db.add(row)
        await self.db.flush()
        return row

    async def get(self, token: str) -> UserRefreshToken | None:
        result = await self.db.execute(
            select(UserRefreshToken).where(UserRefreshToken.refresh_token == token)
        )
        return result.scalar_one_or_none()

    async def delete(self, token: str) -> bool:
        """True only for the caller that actually removed the row."""
        result = await self.db.execute(
            delete(UserRefreshToken).where(UserRefreshToken.refresh_token == token)
        )
        return result.rowcount == 1

    async def delete_for_user(self, user_id: str) -> int:
        result = await self.db.execute(
            delete(UserRefreshToken).where(UserRefreshToken.user_id == user_id)
        )
        return result.rowcount or 0

    async def count_for_user(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(UserRefreshToken).where(UserRefreshToken.user_id == user_id)
        )
        return result.scalar_one()

    async def delete_expired(self, now: datetime) -> int:
        result = await self.db.execute(
            delete(UserRefreshToken).where(UserRefreshToken.expires_at <= now)
        )
        return result.rowcount or 0
