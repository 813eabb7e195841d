"""SQLAlchemy adapter for the token blacklist."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from authcore.services._shared.ports import Clock, SystemClock, TokenBlacklist, TokenStore
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from ._errors import store_errors

log = logging.getLogger(__name__)


class SQLTokenBlacklist(TokenBlacklist):
    """
    ``token_blacklist`` table with a unique ``token_id``.

    :meth:`add` is an ``INSERT`` that ignores conflicts; its row count is the
    "did I create it" answer refresh rotation depends on.

    :param token_store: Enumerated by :meth:`add_all_active_for_user`.
    """

    def __init__(self, token_store: TokenStore, clock: Clock | None = None) -> None:
        self.token_store = token_store
        self.clock = clock or SystemClock()

    def add(self, *, jti: str, user_id: int, original_exp: datetime, reason: str) -> bool:
        with store_errors("blacklist.add"), SQLAlchemyUnitOfWork() as uow:
            return uow.blacklist.insert_if_absent(
                token_id=jti,
                user_id=user_id,
                original_exp=original_exp,
                reason=reason,
                now=self.clock.now(),
            )

    def contains(self, jti: str) -> bool:
        with store_errors("blacklist.contains"), SQLAlchemyReadOnlyUnitOfWork() as uow:
            return uow.blacklist.contains(jti)

    def add_all_active_for_user(self, user_id: int, reason: str) -> int:
        added = 0
        for view in self.token_store.active_for_user(user_id):
            if view.access_jti and self.add(
                jti=view.access_jti, user_id=user_id, original_exp=view.access_exp, reason=reason
            ):
                added += 1
            if view.refresh_jti and view.refresh_exp and self.add(
                jti=view.refresh_jti, user_id=user_id, original_exp=view.refresh_exp, reason=reason
            ):
                added += 1
        return added

    def purge_older_than(self, days: int) -> int:
        cutoff = self.clock.now() - timedelta(days=days)
        with store_errors("blacklist.purge"), SQLAlchemyUnitOfWork() as uow:
            deleted = uow.blacklist.delete_expired_before(cutoff)
        log.info("blacklist.purged", extra={"count": deleted, "reason": f"older_than_{days}d"})
        return deleted
