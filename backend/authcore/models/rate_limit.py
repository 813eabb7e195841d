"""Per-IP/action attempt counters backing the login lockout."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from authcore.core.extensions import db

from .base import PKMixin, ReprMixin, UTCDateTime, utcnow


class RateLimit(PKMixin, ReprMixin, db.Model):
    """Attempt counter for one ``(ip_address, action)`` pair."""

    __tablename__ = "rate_limits"

    ip_address: Mapped[str] = mapped_column(String(45), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_attempt: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow)
    lockout_until: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        UniqueConstraint("ip_address", "action", name="uq_rate_limits_ip_address_action"),
    )
