from .sms import (
    SmsServiceError,
    SmsRateLimitError,
    SmsConfigError,
    SmsProvider,
    TwilioSmsProvider,
    ConsoleSmsProvider,
    get_sms_provider,
)

__all__ = [
    "SmsServiceError",
    "SmsRateLimitError",
    "SmsConfigError",
    "SmsProvider",
    "TwilioSmsProvider",
    "ConsoleSmsProvider",
    "get_sms_provider",
]
