"""SQLAlchemy adapter for :class:`~authcore.services._shared.ports.RateLimitStore`."""

from __future__ import annotations

from datetime import datetime

from authcore.services._shared.ports import AttemptState, RateLimitStore
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from ._errors import store_errors


class SQLRateLimitStore(RateLimitStore):
    """``rate_limits`` table keyed by ``(ip_address, action)``."""

    def get(self, ip: str, action: str, *, now: datetime) -> AttemptState | None:
        with store_errors("rate_limits.get"), SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.rate_limits.find(ip, action)
            if row is None:
                return None
            return AttemptState(attempt_count=row.attempt_count, lockout_until=row.lockout_until)

    def increment(self, ip: str, action: str, *, now: datetime) -> int:
        with store_errors("rate_limits.increment"), SQLAlchemyUnitOfWork() as uow:
            return uow.rate_limits.increment(ip, action, now=now)

    def lock(self, ip: str, action: str, *, until: datetime, now: datetime) -> None:
        with store_errors("rate_limits.lock"), SQLAlchemyUnitOfWork() as uow:
            uow.rate_limits.set_lockout(ip, action, until=until)

    def reset(self, ip: str, action: str) -> None:
        with store_errors("rate_limits.reset"), SQLAlchemyUnitOfWork() as uow:
            uow.rate_limits.remove(ip, action)
