"""Phone login flow: request a code, verify it, and manage the resulting sessions."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.core import Clock, Settings
from ideas_api.providers import SmsProvider
from ideas_api.repositories import OtpRepository
from ideas_api.services.identity import IdentityService
from ideas_api.services.otp import OtpService
from ideas_api.services.sessions import SessionService, TokenPair

logger = logging.getLogger(__name__)


class AuthService:
    """OTP login: issue a code, then trade it for a session."""

    def __init__(self, db: AsyncSession, settings: Settings, clock: Clock, sms: SmsProvider):
        self.db = db
        self.otp = OtpService(db, settings, clock, sms)
        self.identity = IdentityService(db)
        self.sessions = SessionService(db, settings, clock)

    async def request_code(self, phone: str) -> None:
        await self.otp.request_code(phone)

    async def verify(self, phone: str, code: str, name: str | None = None) -> TokenPair:
        canonical = await self.otp.verify_code(phone, code)
        # OTP removal, user provisioning and the refresh row commit together.
        try:
            await OtpRepository(self.db).delete(canonical)
            user = await self.identity.resolve_or_create(canonical, name)
            pair = await self.sessions.mint(user.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info("User %s authenticated by OTP", user.id)
        return pair
