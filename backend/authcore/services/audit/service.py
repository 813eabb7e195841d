# authcore/services/audit/service.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from authcore.models.auth_log import AuthLog
from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.ports import Clock, SystemClock
from authcore.uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)

_UA_MAX = 255


class AuthAuditLog(BaseService):
    """
    Append authentication events to ``auth_logs``.

    Auditing must never break the action being audited: when the row cannot
    be written (missing table, database down) the event goes to the
    application log instead and :meth:`record` returns ``False``.
    """

    def __init__(self, *, clock: Clock | None = None, ctx: ServiceContext | None = None) -> None:
        super().__init__(ctx=ctx)
        self.clock = clock or SystemClock()

    def record(
        self,
        action: str,
        status: str,
        user_id: int | None = None,
        **details: Any,
    ) -> bool:
        """
        Persist one event in its own transaction.

        :param action: ``login``, ``logout``, ``refresh``, ``invitation_redeem``...
        :param status: ``success`` or ``failure``.
        :param user_id: Subject, when known.
        :param details: Extra JSON-serialisable context.
        :returns: ``True`` when the row was written.
        """
        entry = AuthLog(
            user_id=user_id,
            action=action,
            status=status,
            ip_address=self.ctx.ip_address,
            user_agent=(self.ctx.user_agent or "")[:_UA_MAX] or None,
            details=details or None,
            created_at=self.clock.now(),
        )
        try:
            with SQLAlchemyUnitOfWork() as uow:
                uow.auth_logs.add(entry)
        except SQLAlchemyError:
            log.warning(
                "audit.%s.%s",
                action,
                status,
                extra={"action": action, "user_id": user_id, "ip_address": self.ctx.ip_address},
                exc_info=True,
            )
            return False
        return True
