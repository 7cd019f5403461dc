import logging
from functools import lru_cache
from typing import Any, Protocol

import httpx

from ideas_api.core import get_settings
from ideas_api.core.phone import mask_phone, to_e164

logger = logging.getLogger(__name__)

CODE_MESSAGE = "Your ideas platform code: {code}"


class SmsServiceError(Exception):
    """Raised when the SMS service fails or returns an unexpected response."""


class SmsRateLimitError(SmsServiceError):
    """Raised when the SMS service rate-limits a request."""


class SmsConfigError(SmsServiceError):
    """Raised when SMS configuration is missing or invalid."""


class SmsProvider(Protocol):
    async def send_code(self, phone: str, code: str) -> None: ...


class TwilioSmsProvider:
    def __init__(self, account_sid: str, auth_token: str, from_number: str, timeout: float = 10.0):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout
        self.base_url = f"https://api.twilio.com/2010-04-01/Accounts/{account_sid}"

    async def _post(self, path: str, data: dict[str, Any]) -> dict:
        url = f"{self.base_url}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(url, data=data, auth=(self.account_sid, self.auth_token))
                if r.status_code == 429:
                    raise SmsRateLimitError("SMS provider rate-limited the request.")
                r.raise_for_status()
                return r.json()
        except httpx.HTTPStatusError as e:
            body = getattr(e.response, "text", None) or ""
            if body:
                logger.warning("Twilio Messages error %s: %s", e.response.status_code, body[:500])
            raise SmsServiceError("SMS service returned an error.") from e
        except httpx.RequestError as e:
            raise SmsServiceError("SMS service unavailable.") from e
        except ValueError as e:
            raise SmsServiceError("SMS service returned invalid JSON.") from e

    async def send_code(self, phone: str, code: str) -> None:
        await self._post(
            "Messages.json",
            {"To": to_e164(phone), "From": self.from_number, "Body": CODE_MESSAGE.format(code=code)},
        )


class ConsoleSmsProvider:
    """Development sink: writes the code to the application log."""

    async def send_code(self, phone: str, code: str) -> None:
        logger.info("OTP code %s for phone %s", code, mask_phone(phone))


@lru_cache
def get_sms_provider() -> SmsProvider:
    s = get_settings()
    if s.twilio_account_sid and s.twilio_auth_token and s.twilio_from_number:
        return TwilioSmsProvider(
            account_sid=s.twilio_account_sid,
            auth_token=s.twilio_auth_token,
            from_number=s.twilio_from_number,
            timeout=s.delivery_timeout_seconds,
        )
    if s.twilio_account_sid or s.twilio_auth_token or s.twilio_from_number:
        raise SmsConfigError("Twilio is partially configured.")
    logger.warning("SMS provider not configured; OTP codes will be logged.")
    return ConsoleSmsProvider()
