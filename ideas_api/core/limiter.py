from slowapi import Limiter
from slowapi.util import get_remote_address

from ideas_api.core.config import get_settings


def get_rate_limit_key(request):
    """Per client IP. Multi-instance deployments need a shared storage_uri."""
    return get_remote_address(request)


limiter = Limiter(key_func=get_rate_limit_key, enabled=get_settings().rate_limit_enabled)


def request_code_limit() -> str:
    return get_settings().auth_request_code_rate_limit


def verify_limit() -> str:
    return get_settings().auth_verify_rate_limit


def refresh_limit() -> str:
    return get_settings().auth_refresh_rate_limit
