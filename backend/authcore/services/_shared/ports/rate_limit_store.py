from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class AttemptState:
    """
    Counter snapshot for one ``(ip, action)`` pair.

    :ivar attempt_count: Attempts recorded since the last reset.
    :ivar lockout_until: End of the active lockout, if any (UTC).
    """

    attempt_count: int
    lockout_until: datetime | None = None


class RateLimitStore(Protocol):
    """
    Backend for per-IP attempt counters.

    ``increment`` MUST be atomic (no lost updates); everything else may be
    best-effort.
    """

    def get(self, ip: str, action: str, *, now: datetime) -> AttemptState | None: ...
    def increment(self, ip: str, action: str, *, now: datetime) -> int: ...
    def lock(self, ip: str, action: str, *, until: datetime, now: datetime) -> None: ...
    def reset(self, ip: str, action: str) -> None: ...


class InMemoryRateLimitStore(RateLimitStore):
    """Lock-protected dict of counters for unit tests."""

    def __init__(self) -> None:
        self._state: dict[tuple[str, str], AttemptState] = {}
        self._lock = threading.Lock()

    def get(self, ip: str, action: str, *, now: datetime) -> AttemptState | None:
        with self._lock:
            return self._state.get((ip, action))

    def increment(self, ip: str, action: str, *, now: datetime) -> int:
        with self._lock:
            cur = self._state.get((ip, action)) or AttemptState(attempt_count=0)
            nxt = AttemptState(attempt_count=cur.attempt_count + 1, lockout_until=cur.lockout_until)
            self._state[(ip, action)] = nxt
            return nxt.attempt_count

    def lock(self, ip: str, action: str, *, until: datetime, now: datetime) -> None:
        with self._lock:
            cur = self._state.get((ip, action)) or AttemptState(attempt_count=0)
            self._state[(ip, action)] = AttemptState(
                attempt_count=cur.attempt_count, lockout_until=until
            )

    def reset(self, ip: str, action: str) -> None:
        with self._lock:
            self._state.pop((ip, action), None)
