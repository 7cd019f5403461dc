import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ideas_api.core import Settings
from ideas_api.repositories import OtpRepository, RefreshTokenRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurgeResult:
    otps: int
    refresh_tokens: int


async def purge_expired(db: AsyncSession, now: datetime, settings: Settings, dry_run: bool = False) -> PurgeResult:
    """Delete expired refresh rows and OTP rows that no longer carry rate-limit history.

    An OTP row is kept until its resend counter would reset anyway and its
    cooldown has elapsed, so purging never shortens a cooldown.
    """
    otps = await OtpRepository(db).delete_stale(now - settings.otp_reset_resend_count, now)
    refresh_tokens = await RefreshTokenRepository(db).delete_expired(now)
    if dry_run:
        await db.rollback()
    else:
        await db.commit()
    logger.info(
        "Purged %s OTP rows and %s refresh tokens%s", otps, refresh_tokens, " (dry run)" if dry_run else ""
    )
    return PurgeResult(otps=otps, refresh_tokens=refresh_tokens)
