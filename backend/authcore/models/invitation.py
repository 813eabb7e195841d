"""Single-use invitation tokens gating self-registration."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from authcore.core.extensions import db

from .base import PKMixin, ReprMixin, UTCDateTime, utcnow


class Invitation(PKMixin, ReprMixin, db.Model):
    """
    Invitation bound to a prospective customer record.

    ``used_at`` is the single authoritative "used" marker; it is written
    exactly once by the conditional update in
    :meth:`authcore.repositories.invitation.InvitationRepository.claim`.
    """

    __tablename__ = "invitations"

    token: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    used_by_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("token", name="uq_invitations_token"),
        Index("ix_invitations_email", "email"),
    )

    @property
    def used(self) -> bool:
        """Derived state: an invitation is used once ``used_at`` is set."""
        return self.used_at is not None

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        return value.strip().lower()
