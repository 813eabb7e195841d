from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import cast

import redis  # type: ignore[import-untyped]

from authcore.services._shared.errors import StoreError
from authcore.services._shared.ports import AttemptState, RateLimitStore

log = logging.getLogger(__name__)


@contextmanager
def _redis_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except redis.RedisError as exc:
        log.error("store.failure", extra={"action": operation}, exc_info=exc)
        raise StoreError(operation) from exc


@dataclass(slots=True)
class RedisRateLimitStore(RateLimitStore):
    """
    Redis-backed attempt counters.

    Two keys per ``(ip, action)``: an ``INCR`` counter that slides out after
    ``window_seconds`` of inactivity, and a lock marker written with
    ``SET NX EX`` whose TTL *is* the lockout.

    :param r: A Redis client (already connected).
    :param window_seconds: Idle time after which the counter is forgotten.
    :param prefix: Key namespace.
    """

    r: redis.Redis
    window_seconds: int = 1800
    prefix: str = "rl"

    # -------------------- helpers --------------------

    def _kc(self, ip: str, action: str) -> str:
        return f"{self.prefix}:{action}:{ip}"

    def _kl(self, ip: str, action: str) -> str:
        return f"{self.prefix}:lock:{action}:{ip}"

    # -------------------- API ------------------------

    def get(self, ip: str, action: str, *, now: datetime) -> AttemptState | None:
        with _redis_errors("rate_limits.get"):
            pipe = self.r.pipeline(transaction=True)
            pipe.get(self._kc(ip, action))
            pipe.ttl(self._kl(ip, action))
            raw_count, lock_ttl = cast(list, pipe.execute())
        lock_ttl = int(lock_ttl)
        if raw_count is None and lock_ttl < 0:
            return None
        lockout_until = now + timedelta(seconds=lock_ttl) if lock_ttl > 0 else None
        return AttemptState(attempt_count=int(raw_count or 0), lockout_until=lockout_until)

    def increment(self, ip: str, action: str, *, now: datetime) -> int:
        key = self._kc(ip, action)
        with _redis_errors("rate_limits.increment"):
            pipe = self.r.pipeline(transaction=True)
            pipe.incr(key)
            pipe.expire(key, self.window_seconds)
            count, _ = cast(list, pipe.execute())
        return int(count)

    def lock(self, ip: str, action: str, *, until: datetime, now: datetime) -> None:
        ttl = max(1, int((until - now).total_seconds()))
        with _redis_errors("rate_limits.lock"):
            self.r.set(self._kl(ip, action), "1", ex=ttl, nx=True)

    def reset(self, ip: str, action: str) -> None:
        with _redis_errors("rate_limits.reset"):
            self.r.delete(self._kc(ip, action), self._kl(ip, action))
