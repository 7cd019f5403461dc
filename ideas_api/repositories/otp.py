"""OTP store: one row per phone."""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.db.models import Otp


class OtpAlreadyExistsError(Exception):
    """A concurrent request inserted the row for this phone first."""


class OtpRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, phone: str, for_update: bool = False) -> Otp | None:
        # never trust a row cached earlier in this session
        stmt = select(Otp).where(Otp.phone == phone).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, existing: Otp | None, **values) -> Otp:
        """Overwrite ``existing`` in place, or insert a new row when there is none.

        The insert runs in a savepoint: losing the race for the phone key raises
        OtpAlreadyExistsError and leaves the outer transaction usable.
        """
        if existing is not None:
            for key, value in values.items():
                setattr(existing, key, value)
            await self.db.flush()
            return existing

        otp = Otp(**values)
        try:
            async with self.db.begin_nested():
                self.db.add(otp)
                await self.db.flush()
        except IntegrityError as e:
            raise OtpAlreadyExistsError(otp.phone) from e
        return otp

    async def consume_attempt(self, phone: str) -> bool:
        """Atomically decrement attempts_left if any remain. False when nothing was consumed."""
        result = await self.db.execute(
            update(Otp)
            .where(Otp.phone == phone, Otp.attempts_left > 0)
            .values(attempts_left=Otp.attempts_left - 1)
        )
        return result.rowcount == 1

    async def delete(self, phone: str) -> bool:
        result = await self.db.execute(delete(Otp).where(Otp.phone == phone))
        return result.rowcount > 0

    async def delete_stale(self, expired_before: datetime, now: datetime) -> int:
        """Remove rows whose resend window and cooldown have both elapsed."""
        result = await self.db.execute(
            delete(Otp).where(Otp.expires_at < expired_before, Otp.next_allowed_at <= now)
        )
        return result.rowcount or 0
