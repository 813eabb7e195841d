"""SQLAlchemy adapter for :class:`~authcore.services._shared.ports.TokenStore`."""

from __future__ import annotations

from datetime import datetime

from authcore.models.issued_token import IssuedToken
from authcore.services._shared.ports import Clock, IssuedTokenView, SystemClock, TokenStore
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from ._errors import store_errors


def _view(row: IssuedToken) -> IssuedTokenView:
    return IssuedTokenView(
        user_id=row.user_id,
        access_jti=row.access_jti,
        access_exp=row.expires_at,
        refresh_jti=row.refresh_jti,
        refresh_exp=row.refresh_expires_at,
        revoked=row.revoked,
    )


class SQLTokenStore(TokenStore):
    """
    ``issued_tokens`` table, one row per user.

    Every method runs in its own unit of work so a failure never leaves a
    half-applied change behind; reads go through the read-only UoW.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or SystemClock()

    def upsert(
        self,
        *,
        user_id: int,
        access_hash: str,
        access_exp: datetime,
        access_jti: str | None = None,
        refresh_hash: str | None = None,
        refresh_exp: datetime | None = None,
        refresh_jti: str | None = None,
    ) -> None:
        now = self.clock.now()
        values = {
            "user_id": user_id,
            "token_hash": access_hash,
            "refresh_token_hash": refresh_hash,
            "access_jti": access_jti,
            "refresh_jti": refresh_jti,
            "expires_at": access_exp,
            "refresh_expires_at": refresh_exp,
            "created_at": now,
            "revoked": False,
            "revoked_at": None,
            "revoked_reason": None,
            "last_used_at": now,
        }
        with store_errors("token_store.upsert"), SQLAlchemyUnitOfWork() as uow:
            uow.issued_tokens.upsert_for_user(values)

    def mark_used(self, token_hash: str) -> bool:
        with store_errors("token_store.mark_used"), SQLAlchemyUnitOfWork() as uow:
            return uow.issued_tokens.touch(token_hash, self.clock.now()) > 0

    def revoke(self, token_hash: str, reason: str) -> bool:
        with store_errors("token_store.revoke"), SQLAlchemyUnitOfWork() as uow:
            if uow.issued_tokens.revoke_by_hash(token_hash, reason=reason, now=self.clock.now()):
                return True
            # Already revoked counts as success; unknown hash does not
            return uow.issued_tokens.find_by_hash(token_hash) is not None

    def revoke_all(self, user_id: int, reason: str) -> int:
        with store_errors("token_store.revoke_all"), SQLAlchemyUnitOfWork() as uow:
            return uow.issued_tokens.revoke_for_user(user_id, reason=reason, now=self.clock.now())

    def is_active(self, token_hash: str, *, allow_expired: bool = False) -> bool:
        now = self.clock.now()
        with store_errors("token_store.is_active"), SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.issued_tokens.find_by_hash(token_hash)
            if row is None or row.revoked:
                return False
            if allow_expired:
                return True
            exp = row.expires_at if row.token_hash == token_hash else row.refresh_expires_at
            return exp is not None and exp > now

    def active_for_user(self, user_id: int) -> list[IssuedTokenView]:
        with store_errors("token_store.active_for_user"), SQLAlchemyReadOnlyUnitOfWork() as uow:
            return [_view(r) for r in uow.issued_tokens.active_for_user(user_id, self.clock.now())]

    def purge(self, *, expired_before: datetime, revoked_before: datetime) -> int:
        with store_errors("token_store.purge"), SQLAlchemyUnitOfWork() as uow:
            return uow.issued_tokens.purge(
                expired_before=expired_before, revoked_before=revoked_before
            )
