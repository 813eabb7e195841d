"""Repository for the token blacklist."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select

from authcore.models.blacklist import BlacklistEntry
from authcore.repositories.base import BaseRepository, insert_ignore


class BlacklistRepository(BaseRepository[BlacklistEntry]):
    """Persistence-only access to :class:`BlacklistEntry`."""

    model = BlacklistEntry

    def insert_if_absent(
        self,
        *,
        token_id: str,
        user_id: int,
        original_exp: datetime,
        reason: str,
        now: datetime,
    ) -> bool:
        """Insert one entry; ``False`` when ``token_id`` is already present."""
        return insert_ignore(
            self.session,
            self.table,
            {
                "token_id": token_id,
                "user_id": user_id,
                "original_exp": original_exp,
                "blacklisted_at": now,
                "reason": reason,
            },
            conflict_columns=("token_id",),
        )

    def contains(self, token_id: str) -> bool:
        stmt = select(BlacklistEntry.id).where(BlacklistEntry.token_id == token_id).limit(1)
        return self.session.execute(stmt).first() is not None

    def delete_expired_before(self, cutoff: datetime) -> int:
        """Delete entries whose ``original_exp`` is older than ``cutoff``."""
        stmt = delete(self.table).where(self.table.c.original_exp < cutoff)
        return int(self.session.execute(stmt).rowcount or 0)
