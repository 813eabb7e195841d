"""Repository for invitations, including the redemption compare-and-set."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update

from authcore.models.invitation import Invitation
from authcore.repositories.base import BaseRepository


class InvitationRepository(BaseRepository[Invitation]):
    """Persistence-only access to :class:`Invitation`."""

    model = Invitation

    def get_by_token(self, token: str) -> Invitation | None:
        stmt = select(Invitation).where(Invitation.token == token)
        stmt = stmt.execution_options(populate_existing=True)
        return self.session.execute(stmt).scalars().first()

    def claim(self, token: str, *, user_id: int, now: datetime) -> int:
        """Mark the invitation used if, and only if, it is still pending.

        The guard lives in the ``WHERE`` clause, so two concurrent claims
        cannot both observe an unused row: the database serialises the
        updates and only one of them reports ``rowcount == 1``.

        :returns: Number of rows updated (``0`` or ``1``).
        """
        c = self.table.c
        stmt = (
            update(self.table)
            .where(c.token == token, c.used_at.is_(None), c.expires_at > now)
            .values(used_at=now, used_by_user_id=user_id)
        )
        return int(self.session.execute(stmt).rowcount or 0)
