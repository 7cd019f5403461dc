from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from the project root so it works regardless of CWD
_env_file = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_env_file, extra="ignore")

    app_version: str = "0.1.0"
    log_level: str = "INFO"

    database_url: str = "postgresql://localhost/ideas_platform"
    db_command_timeout_seconds: float = Field(10.0, gt=0)

    # Access tokens (HS256). The secret has no default: startup fails without it.
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_ttl_seconds: int = Field(15 * 60, gt=0)
    refresh_ttl_seconds: int = Field(30 * 24 * 60 * 60, gt=0)

    # OTP issuance and verification
    otp_code_ttl_seconds: int = Field(5 * 60, gt=0)
    otp_initial_attempts: int = Field(3, gt=0)
    otp_reset_resend_count_seconds: int = Field(24 * 60 * 60, ge=0)
    otp_soft_attempts: int = Field(3, gt=0)
    otp_sub_soft_seconds: int = Field(60, ge=0)
    otp_hard_attempts: int = Field(5, gt=0)
    otp_sub_hard_seconds: int = Field(30 * 60, ge=0)
    otp_post_hard_seconds: int = Field(24 * 60 * 60, ge=0)

    # bcrypt work factor for OTP hashes
    password_hash_cost: int = Field(10, ge=4, le=31)

    # SMS delivery (Twilio Messages API); unset => codes are written to the log
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_from_number: str | None = None
    delivery_timeout_seconds: float = Field(10.0, gt=0)

    # Per-IP edge limits (slowapi); the per-phone schedule above is separate
    rate_limit_enabled: bool = True
    auth_request_code_rate_limit: str = "10/minute"
    auth_verify_rate_limit: str = "10/minute"
    auth_refresh_rate_limit: str = "30/minute"

    # CORS (comma-separated origins; * allows all)
    cors_origins: str = "*"

    @model_validator(mode="after")
    def _check_attempt_tiers(self) -> "Settings":
        if self.otp_hard_attempts < self.otp_soft_attempts:
            raise ValueError("otp_hard_attempts must be >= otp_soft_attempts")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parsed CORS origins for middleware."""
        raw = self.cors_origins.strip()
        return ["*"] if not raw else [o.strip() for o in raw.split(",") if o.strip()]

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(seconds=self.access_ttl_seconds)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(seconds=self.refresh_ttl_seconds)

    @property
    def otp_code_ttl(self) -> timedelta:
        return timedelta(seconds=self.otp_code_ttl_seconds)

    @property
    def otp_reset_resend_count(self) -> timedelta:
        return timedelta(seconds=self.otp_reset_resend_count_seconds)


@lru_cache
def get_settings() -> Settings:
    return Settings()
