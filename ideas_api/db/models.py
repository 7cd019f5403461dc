import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Boolean,
    CheckConstraint,
    Integer,
    ForeignKey,
    Index,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import relationship

from .base import Base
from .types import UTCDateTime


def uuid4_str():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=uuid4_str)
    name = Column(String(255), nullable=False)
    phone = Column(String(10), nullable=False)  # canonical national form
    is_deleted = Column(Boolean, nullable=False, default=False, server_default=text("false"))
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utcnow)

    refresh_tokens = relationship(
        "UserRefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        # one active account per phone; soft-deleted rows keep their phone
        Index(
            "uq_users_phone_active",
            "phone",
            unique=True,
            postgresql_where=text("NOT is_deleted"),
            sqlite_where=text("NOT is_deleted"),
        ),
    )


class Otp(Base):
    """Pending phone verification. One row per phone; removed on successful verification."""
    __tablename__ = "otps"

    phone = Column(String(10), primary_key=True)
    code_hash = Column(String(255), nullable=False)
    expires_at = Column(UTCDateTime, nullable=False)
    attempts_left = Column(Integer, nullable=False)
    resend_count = Column(Integer, nullable=False, default=0, server_default="0")
    next_allowed_at = Column(UTCDateTime, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (CheckConstraint("attempts_left >= 0", name="ck_otps_attempts_left_non_negative"),)


class UserRefreshToken(Base):
    __tablename__ = "user_refresh_tokens"

    refresh_token = Column(String(128), primary_key=True)
    user_id = Column(Uuid(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(UTCDateTime, nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (Index("ix_user_refresh_tokens_user_id", "user_id"),)
