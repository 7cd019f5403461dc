"""
Shared fixtures: in-memory SQLite, a frozen clock, a recording SMS sink and an
ASGI client with the app's dependencies overridden.
"""

import os

# Settings are read at import time by the limiter and the engine module.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import bcrypt
import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event, func, select, update
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine, AsyncSession
from sqlalchemy.pool import StaticPool

from ideas_api.core import Settings, get_clock, get_settings
from ideas_api.db.models import Otp, User, UserRefreshToken
from ideas_api.db.base import Base
from ideas_api.dependencies import get_db
from ideas_api.main import app
from ideas_api.providers import SmsServiceError, get_sms_provider
from ideas_api.services import AuthService

START = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime = START):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class RecordingSmsProvider:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    async def send_code(self, phone: str, code: str) -> None:
        if self.fail:
            raise SmsServiceError("gateway down")
        self.sent.append((phone, code))

    def last_code(self, phone: str) -> str:
        for sent_phone, code in reversed(self.sent):
            if sent_phone == phone:
                return code
        raise AssertionError(f"no code sent to {phone}")


class StoreInspector:
    """Reads the database through a fresh session on every call."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def otp(self, phone: str) -> Otp | None:
        async with self.session_factory() as db:
            return (await db.execute(select(Otp).where(Otp.phone == phone))).scalar_one_or_none()

    async def otp_count(self, phone: str) -> int:
        async with self.session_factory() as db:
            return (await db.execute(select(func.count()).select_from(Otp).where(Otp.phone == phone))).scalar_one()

    async def force_code(self, phone: str, code: str) -> None:
        code_hash = bcrypt.hashpw(code.encode(), bcrypt.gensalt(rounds=4)).decode()
        async with self.session_factory() as db:
            await db.execute(update(Otp).where(Otp.phone == phone).values(code_hash=code_hash))
            await db.commit()

    async def users(self, phone: str) -> list[User]:
        async with self.session_factory() as db:
            return list((await db.execute(select(User).where(User.phone == phone))).scalars())

    async def refresh_rows(self, user_id: str) -> list[UserRefreshToken]:
        async with self.session_factory() as db:
            result = await db.execute(select(UserRefreshToken).where(UserRefreshToken.user_id == user_id))
            return list(result.scalars())

    async def soft_delete_user(self, user_id: str) -> None:
        async with self.session_factory() as db:
            await db.execute(update(User).where(User.id == user_id).values(is_deleted=True))
            await db.commit()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret="test-secret",
        password_hash_cost=4,
        access_ttl_seconds=2,
        refresh_ttl_seconds=3600,
        otp_code_ttl_seconds=300,
        otp_initial_attempts=3,
        otp_reset_resend_count_seconds=3600,
        otp_soft_attempts=3,
        otp_sub_soft_seconds=3,
        otp_hard_attempts=5,
        otp_sub_hard_seconds=1800,
        otp_post_hard_seconds=86400,
        delivery_timeout_seconds=5,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def sms() -> RecordingSmsProvider:
    return RecordingSmsProvider()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # Let SQLAlchemy own BEGIN so SAVEPOINTs behave under pysqlite.
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def store(session_factory) -> StoreInspector:
    return StoreInspector(session_factory)


@pytest.fixture
def auth_service(session_factory, settings, clock, sms):
    """Open an AuthService on a fresh session, the way one request would."""

    @asynccontextmanager
    async def _open():
        async with session_factory() as db:
            yield AuthService(db, settings, clock, sms)

    return _open


@pytest_asyncio.fixture
async def client(session_factory, settings, clock, sms):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_sms_provider] = lambda: sms
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
