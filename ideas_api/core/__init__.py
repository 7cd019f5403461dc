"""Core configuration, auth primitives, and shared infrastructure."""

from ideas_api.core.config import Settings, get_settings
from ideas_api.core.clock import Clock, SystemClock, get_clock
from ideas_api.core.auth import (
    AccessClaims,
    generate_code,
    hash_code,
    verify_code,
    generate_refresh_token,
    create_access_token,
    decode_access_token,
)
from ideas_api.core.phone import normalize_phone, mask_phone
from ideas_api.core.limiter import limiter

__all__ = [
    "Settings",
    "get_settings",
    "Clock",
    "SystemClock",
    "get_clock",
    "AccessClaims",
    "generate_code",
    "hash_code",
    "verify_code",
    "generate_refresh_token",
    "create_access_token",
    "decode_access_token",
    "normalize_phone",
    "mask_phone",
    "limiter",
]
