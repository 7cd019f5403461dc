from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.db.models import User


class PhoneTakenError(Exception):
    """An active user with this phone already exists."""


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_by_phone(self, phone: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.phone == phone, User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    async def get_active_by_id(self, user_id: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    async def create(self, name: str, phone: str) -> User:
        """Insert inside a savepoint so a unique-phone loss leaves the outer transaction usable."""
        user = User(name=name, phone=phone, is_deleted=False)
        try:
            async with self.db.begin_nested():
                self.db.add(user)
                await self.db.flush()
        except IntegrityError as e:
            raise PhoneTakenError(phone) from e
        return user
