from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
import os

from ideas_api.core.config import get_settings


def async_database_url(url: str) -> str:
    """Support both postgres:// and postgresql:// by routing them to asyncpg."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://") and "asyncpg" not in url:
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def build_engine(url: str, command_timeout: float | None = None):
    url = async_database_url(url)
    connect_args = {}
    if url.startswith("postgresql+asyncpg://") and command_timeout:
        # per-statement deadline enforced by the driver
        connect_args["command_timeout"] = command_timeout
    return create_async_engine(
        url,
        echo=os.getenv("SQL_ECHO", "0") == "1",
        connect_args=connect_args,
        pool_pre_ping=True,
    )


_settings = get_settings()
engine = build_engine(_settings.database_url, _settings.db_command_timeout_seconds)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)