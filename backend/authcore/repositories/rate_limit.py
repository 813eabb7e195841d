"""Repository for login attempt counters."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update

from authcore.models.rate_limit import RateLimit
from authcore.repositories.base import BaseRepository, insert_ignore


class RateLimitRepository(BaseRepository[RateLimit]):
    """Persistence-only access to :class:`RateLimit` counters."""

    model = RateLimit

    def find(self, ip_address: str, action: str) -> RateLimit | None:
        stmt = select(RateLimit).where(
            RateLimit.ip_address == ip_address, RateLimit.action == action
        )
        stmt = stmt.execution_options(populate_existing=True)
        return self.session.execute(stmt).scalars().first()

    def increment(self, ip_address: str, action: str, *, now: datetime) -> int:
        """Atomically add one attempt, creating the counter on first use.

        :returns: Attempt count after the increment.
        """
        c = self.table.c
        stmt = (
            update(self.table)
            .where(c.ip_address == ip_address, c.action == action)
            .values(attempt_count=c.attempt_count + 1, last_attempt=now)
        )
        if int(self.session.execute(stmt).rowcount or 0) == 0:
            created = insert_ignore(
                self.session,
                self.table,
                {
                    "ip_address": ip_address,
                    "action": action,
                    "attempt_count": 1,
                    "last_attempt": now,
                    "lockout_until": None,
                },
                conflict_columns=("ip_address", "action"),
            )
            if not created:
                self.session.execute(stmt)
        count = self.session.execute(
            select(c.attempt_count).where(c.ip_address == ip_address, c.action == action)
        ).scalar_one()
        return int(count)

    def set_lockout(self, ip_address: str, action: str, *, until: datetime) -> None:
        c = self.table.c
        self.session.execute(
            update(self.table)
            .where(c.ip_address == ip_address, c.action == action)
            .values(lockout_until=until)
        )

    def remove(self, ip_address: str, action: str) -> int:
        c = self.table.c
        stmt = delete(self.table).where(c.ip_address == ip_address, c.action == action)
        return int(self.session.execute(stmt).rowcount or 0)
