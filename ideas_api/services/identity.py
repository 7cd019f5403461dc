import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.core import mask_phone
from ideas_api.core.errors import InternalError, InvalidNameError
from ideas_api.db.models import User
from ideas_api.repositories import UserRepository, PhoneTakenError

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255


class IdentityService:
    """Find the active user for a canonical phone, creating it on first login."""

    def __init__(self, db: AsyncSession):
        self.repo = UserRepository(db)

    async def resolve_or_create(self, phone: str, name: str | None) -> User:
        user = await self.repo.get_active_by_phone(phone)
        if user:
            return user

        name = (name or "").strip()
        if not name:
            logger.info("New user %s submitted no name", mask_phone(phone))
            raise InvalidNameError("name can't be empty")
        if len(name) > MAX_NAME_LENGTH:
            raise InvalidNameError("name is too long")

        try:
            user = await self.repo.create(name=name, phone=phone)
        except PhoneTakenError:
            # Lost a race with a concurrent first login; the winner's row is the account.
            user = await self.repo.get_active_by_phone(phone)
            if user is None:
                raise InternalError("user vanished after unique conflict")
            return user
        logger.info("Created user %s for %s", user.id, mask_phone(phone))
        return user
