"""OTP issuance (per-phone tiered cooldowns) and verification (bounded attempts)."""

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.core import Clock, Settings, generate_code, hash_code, verify_code, normalize_phone, mask_phone
from ideas_api.core.errors import (
    AttemptsExhaustedError,
    ExpiredError,
    InternalError,
    InvalidCredentialsError,
    RateLimitedError,
)
from ideas_api.db.models import Otp
from ideas_api.providers import SmsProvider, SmsServiceError
from ideas_api.repositories import OtpRepository, OtpAlreadyExistsError

logger = logging.getLogger(__name__)


def resend_delay(resend_count: int, settings: Settings) -> timedelta:
    """Cooldown before the next code, looked up from the count after this issuance."""
    if resend_count < settings.otp_soft_attempts:
        seconds = settings.otp_sub_soft_seconds
    elif resend_count < settings.otp_hard_attempts:
        seconds = settings.otp_sub_hard_seconds
    else:
        seconds = settings.otp_post_hard_seconds
    return timedelta(seconds=seconds)


@dataclass(frozen=True)
class IssuePlan:
    resend_count: int
    next_allowed_at: datetime


def plan_issue(otp: Otp | None, now: datetime, settings: Settings) -> IssuePlan:
    """Apply the cooldown gate and the resend counter update. Raises RateLimitedError."""
    if otp is None:
        resend_count = 0
    else:
        if now < otp.next_allowed_at:
            raise RateLimitedError(math.ceil((otp.next_allowed_at - now).total_seconds()))
        if now > otp.expires_at + settings.otp_reset_resend_count:
            resend_count = 0
        else:
            resend_count = otp.resend_count + 1
    return IssuePlan(resend_count=resend_count, next_allowed_at=now + resend_delay(resend_count, settings))


class OtpService:
    def __init__(self, db: AsyncSession, settings: Settings, clock: Clock, sms: SmsProvider):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.sms = sms
        self.repo = OtpRepository(db)

    async def request_code(self, raw_phone: str) -> None:
        phone = normalize_phone(raw_phone)
        masked = mask_phone(phone)

        # Cheap gate first so rate-limited callers never pay for a bcrypt hash.
        plan_issue(await self.repo.get(phone), self.clock.now(), self.settings)

        code = generate_code()
        code_hash = await asyncio.to_thread(hash_code, code, self.settings.password_hash_cost)

        now = self.clock.now()
        otp = await self.repo.get(phone, for_update=True)
        try:
            plan = plan_issue(otp, now, self.settings)
        except RateLimitedError:
            logger.info("OTP request for %s lost a race with a concurrent issuance", masked)
            raise

        values = dict(
            code_hash=code_hash,
            expires_at=now + self.settings.otp_code_ttl,
            attempts_left=self.settings.otp_initial_attempts,
            resend_count=plan.resend_count,
            next_allowed_at=plan.next_allowed_at,
        )
        if otp is None:
            values.update(phone=phone, created_at=now)
        try:
            await self.repo.upsert(otp, **values)
        except OtpAlreadyExistsError as e:
            logger.info("OTP row for %s was created concurrently", masked)
            raise RateLimitedError(self.settings.otp_sub_soft_seconds) from e
        await self.db.commit()
        logger.info("OTP issued for %s (resend_count=%s)", masked, plan.resend_count)

        # The row stays committed if delivery fails; the caller retries after the cooldown.
        try:
            await asyncio.wait_for(
                self.sms.send_code(phone, code), timeout=self.settings.delivery_timeout_seconds
            )
        except (SmsServiceError, asyncio.TimeoutError) as e:
            logger.error("Failed to deliver OTP to %s: %s", masked, e)
            raise InternalError("code delivery failed") from e

    async def verify_code(self, raw_phone: str, code: str) -> str:
        """Check ``code`` and return the canonical phone on success.

        One attempt is consumed and committed before the hash comparison, so a
        crash after the decrement costs the user an attempt but can never grant
        an extra one.
        """
        phone = normalize_phone(raw_phone)
        masked = mask_phone(phone)
        now = self.clock.now()

        otp = await self.repo.get(phone)
        if otp is None:
            logger.info("No pending OTP for %s", masked)
            raise InvalidCredentialsError("otp not found")
        if now >= otp.expires_at:
            logger.info("OTP for %s expired", masked)
            raise ExpiredError("otp expired")
        if otp.attempts_left <= 0:
            logger.info("OTP attempts exhausted for %s", masked)
            raise AttemptsExhaustedError("no attempts left")

        code_hash = otp.code_hash
        if not await self.repo.consume_attempt(phone):
            logger.info("OTP attempts for %s were consumed concurrently", masked)
            raise AttemptsExhaustedError("no attempts left")
        await self.db.commit()

        if not await asyncio.to_thread(verify_code, code, code_hash):
            logger.info("OTP mismatch for %s", masked)
            raise InvalidCredentialsError("otp mismatch")
        return phone
