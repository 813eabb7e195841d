from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from authcore.services._shared.ports.clock import Clock, SystemClock
from authcore.services._shared.ports.token_store import TokenStore


class TokenBlacklist(Protocol):
    """
    Explicit revocation ledger keyed by ``jti``.

    ``add`` MUST be idempotent and MUST report whether this very call created
    the entry; refresh rotation relies on that to elect a single winner.
    """

    def add(self, *, jti: str, user_id: int, original_exp: datetime, reason: str) -> bool: ...
    def contains(self, jti: str) -> bool: ...
    def add_all_active_for_user(self, user_id: int, reason: str) -> int: ...
    def purge_older_than(self, days: int) -> int: ...


@dataclass(frozen=True, slots=True)
class BlacklistedToken:
    user_id: int
    original_exp: datetime
    blacklisted_at: datetime
    reason: str


class InMemoryTokenBlacklist(TokenBlacklist):
    """
    Lock-protected in-memory blacklist.

    :param token_store: Store enumerated by :meth:`add_all_active_for_user`.
    """

    def __init__(self, token_store: TokenStore, clock: Clock | None = None) -> None:
        self.token_store = token_store
        self.clock = clock or SystemClock()
        self._entries: dict[str, BlacklistedToken] = {}
        self._lock = threading.Lock()

    def add(self, *, jti: str, user_id: int, original_exp: datetime, reason: str) -> bool:
        with self._lock:
            if jti in self._entries:
                return False
            self._entries[jti] = BlacklistedToken(
                user_id=user_id,
                original_exp=original_exp,
                blacklisted_at=self.clock.now(),
                reason=reason,
            )
            return True

    def contains(self, jti: str) -> bool:
        with self._lock:
            return jti in self._entries

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
        with self._lock:
            doomed = [j for j, e in self._entries.items() if e.original_exp < cutoff]
            for j in doomed:
                del self._entries[j]
            return len(doomed)

    # Test helper
    def get(self, jti: str) -> BlacklistedToken | None:
        return self._entries.get(jti)
