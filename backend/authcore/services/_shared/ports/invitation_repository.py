from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol

from authcore.services._shared.errors import ConflictError


@dataclass(frozen=True, slots=True)
class InvitationRecord:
    """
    Snapshot of an invitation row.

    ``used`` is derived from ``used_at``; nothing else marks an invitation
    as consumed.
    """

    token: str
    email: str
    customer_id: int
    created_at: datetime
    expires_at: datetime
    used_at: datetime | None = None
    used_by_user_id: int | None = None

    @property
    def used(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class InvitationRepository(Protocol):
    """
    Invitation persistence including the redemption compare-and-set.
    """

    def add(self, record: InvitationRecord) -> InvitationRecord: ...
    def get(self, token: str) -> InvitationRecord | None: ...

    def mark_used(self, token: str, *, user_id: int, now: datetime) -> int:
        """
        Set ``used_at``/``used_by_user_id`` where the token is still unused
        and unexpired, as one conditional update.

        :returns: Rows affected (1 = this caller won, 0 = re-read and classify).
        """


class InMemoryInvitationRepository(InvitationRepository):
    """
    Dict-backed repository whose ``mark_used`` is atomic under a lock.

    .. note::
       The lock plays the role of the database's row-level serialisation so
       threaded tests exercise the same contract as the SQL adapter.
    """

    def __init__(self) -> None:
        self._rows: dict[str, InvitationRecord] = {}
        self._lock = threading.Lock()

    def add(self, record: InvitationRecord) -> InvitationRecord:
        with self._lock:
            if record.token in self._rows:
                raise ConflictError("Invitation", "token already exists")
            self._rows[record.token] = record
            return record

    def get(self, token: str) -> InvitationRecord | None:
        with self._lock:
            return self._rows.get(token)

    def mark_used(self, token: str, *, user_id: int, now: datetime) -> int:
        with self._lock:
            row = self._rows.get(token)
            if row is None or row.used_at is not None or not row.expires_at > now:
                return 0
            self._rows[token] = replace(row, used_at=now, used_by_user_id=user_id)
            return 1
