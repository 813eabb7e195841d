"""Explicit revocation ledger keyed by token id (jti)."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from authcore.core.extensions import db

from .base import PKMixin, ReprMixin, UTCDateTime, utcnow


class BlacklistReason(str, enum.Enum):
    """Why a token id was put on the blacklist."""

    LOGOUT = "logout"
    TOKEN_ROTATION = "token_rotation"
    SECURITY = "security"
    PASSWORD_CHANGE = "password_change"


class BlacklistEntry(PKMixin, ReprMixin, db.Model):
    """
    One revoked token id.

    ``token_id`` is unique so inserting an already-blacklisted jti is a no-op;
    the refresh rotation uses that property to let exactly one racer win.
    ``reason`` is stored as plain text so legacy rows with unknown reasons
    still load.
    """

    __tablename__ = "token_blacklist"

    token_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    original_exp: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    blacklisted_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    reason: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("token_id", name="uq_token_blacklist_token_id"),
        Index("ix_token_blacklist_user_id", "user_id"),
        Index("ix_token_blacklist_original_exp", "original_exp"),
    )
