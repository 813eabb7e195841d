"""SQLAlchemy adapter for :class:`~authcore.services._shared.ports.InvitationRepository`."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError

from authcore.models.invitation import Invitation
from authcore.services._shared.errors import ConflictError
from authcore.services._shared.ports import InvitationRecord, InvitationRepository
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from ._errors import store_errors


def _record(row: Invitation) -> InvitationRecord:
    return InvitationRecord(
        token=row.token,
        email=row.email,
        customer_id=row.customer_id,
        created_at=row.created_at,
        expires_at=row.expires_at,
        used_at=row.used_at,
        used_by_user_id=row.used_by_user_id,
    )


class SQLInvitationRepository(InvitationRepository):
    """``invitations`` table; redemption is a single conditional ``UPDATE``."""

    def add(self, record: InvitationRecord) -> InvitationRecord:
        row = Invitation(
            token=record.token,
            email=record.email,
            customer_id=record.customer_id,
            created_at=record.created_at,
            expires_at=record.expires_at,
        )
        with store_errors("invitations.add"):
            try:
                with SQLAlchemyUnitOfWork() as uow:
                    uow.invitations.add(row)
                    out = _record(row)
            except IntegrityError as exc:
                raise ConflictError("Invitation", "token already exists") from exc
        return out

    def get(self, token: str) -> InvitationRecord | None:
        with store_errors("invitations.get"), SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.invitations.get_by_token(token)
            return _record(row) if row else None

    def mark_used(self, token: str, *, user_id: int, now: datetime) -> int:
        with store_errors("invitations.claim"), SQLAlchemyUnitOfWork() as uow:
            return uow.invitations.claim(token, user_id=user_id, now=now)
