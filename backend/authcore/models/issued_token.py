"""Issued-token metadata, one row per user (single-session model)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column

from authcore.core.extensions import db

from .base import PKMixin, ReprMixin, UTCDateTime, utcnow


class IssuedToken(PKMixin, ReprMixin, db.Model):
    """
    Server-side record of the latest access/refresh pair handed to a user.

    Only SHA-256 hashes of the wire tokens are stored. The ``*_jti`` columns
    let a bulk invalidation blacklist the live tokens without decoding them.
    Rows are replaced on every issuance, flagged on revocation and only
    deleted by the ``flask auth cleanup-tokens`` maintenance command.
    """

    __tablename__ = "issued_tokens"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    refresh_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    access_jti: Mapped[str | None] = mapped_column(String(64), nullable=True)
    refresh_jti: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    refresh_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    revoked_reason: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_issued_tokens_user_id"),
        Index("ix_issued_tokens_token_hash", "token_hash"),
        Index("ix_issued_tokens_refresh_token_hash", "refresh_token_hash"),
    )
