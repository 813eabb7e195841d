"""Repository for issued-token metadata rows."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, or_, select, update

from authcore.models.issued_token import IssuedToken
from authcore.repositories.base import BaseRepository, upsert


class IssuedTokenRepository(BaseRepository[IssuedToken]):
    """Persistence-only access to :class:`IssuedToken`."""

    model = IssuedToken

    def upsert_for_user(self, values: dict[str, Any]) -> None:
        """Insert or replace the single row keyed by ``values["user_id"]``."""
        upsert(self.session, self.table, values, key_columns=("user_id",))

    def find_by_hash(self, token_hash: str) -> IssuedToken | None:
        """Return the row whose access or refresh hash equals ``token_hash``."""
        stmt = select(IssuedToken).where(
            or_(IssuedToken.token_hash == token_hash, IssuedToken.refresh_token_hash == token_hash)
        )
        stmt = stmt.limit(1).execution_options(populate_existing=True)
        return self.session.execute(stmt).scalars().first()

    def touch(self, token_hash: str, now: datetime) -> int:
        """Stamp ``last_used_at`` on the row owning the access hash."""
        stmt = (
            update(self.table)
            .where(self.table.c.token_hash == token_hash)
            .values(last_used_at=now)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def revoke_by_hash(self, token_hash: str, *, reason: str, now: datetime) -> int:
        """Revoke the non-revoked row matching either hash column."""
        c = self.table.c
        stmt = (
            update(self.table)
            .where(
                or_(c.token_hash == token_hash, c.refresh_token_hash == token_hash),
                c.revoked.is_(False),
            )
            .values(revoked=True, revoked_at=now, revoked_reason=reason)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def revoke_for_user(self, user_id: int, *, reason: str, now: datetime) -> int:
        """Revoke every non-revoked row of ``user_id``; returns rows affected."""
        c = self.table.c
        stmt = (
            update(self.table)
            .where(c.user_id == user_id, c.revoked.is_(False))
            .values(revoked=True, revoked_at=now, revoked_reason=reason)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def active_for_user(self, user_id: int, now: datetime) -> Sequence[IssuedToken]:
        """Non-revoked rows of ``user_id`` with at least one unexpired token."""
        stmt = select(IssuedToken).where(
            IssuedToken.user_id == user_id,
            IssuedToken.revoked.is_(False),
            or_(
                IssuedToken.expires_at > now,
                and_(
                    IssuedToken.refresh_expires_at.is_not(None),
                    IssuedToken.refresh_expires_at > now,
                ),
            ),
        )
        return self.session.execute(stmt).scalars().all()

    def purge(self, *, expired_before: datetime, revoked_before: datetime) -> int:
        """Delete rows long expired or long revoked (maintenance only)."""
        c = self.table.c
        fully_expired = and_(
            c.expires_at < expired_before,
            or_(c.refresh_expires_at.is_(None), c.refresh_expires_at < expired_before),
        )
        long_revoked = and_(c.revoked.is_(True), c.revoked_at < revoked_before)
        stmt = delete(self.table).where(or_(fully_expired, long_revoked))
        return int(self.session.execute(stmt).rowcount or 0)
