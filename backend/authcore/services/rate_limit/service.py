# authcore/services/rate_limit/service.py
from __future__ import annotations

import logging
import math

from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import StoreError
from authcore.services._shared.ports import AttemptState, Clock, RateLimitStore, SystemClock
from authcore.services.rate_limit.dto import LOGIN_ACTION, RateLimitSettings, RateLimitStatus

log = logging.getLogger(__name__)


class RateLimiter(BaseService):
    """
    Per-IP attempt counter with a fixed lockout.

    Reaching ``max_attempts`` locks the ``(ip, action)`` pair for the lockout
    duration; once it ends the counter starts over. Store failures fail open
    (the request proceeds) and are logged, so an outage of the counter
    backend never locks everybody out.

    :param store: Counter backend (SQL or Redis).
    :param settings: Thresholds.
    :param clock: Time source.
    """

    def __init__(
        self,
        *,
        store: RateLimitStore,
        settings: RateLimitSettings | None = None,
        clock: Clock | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.store = store
        self.settings = settings or RateLimitSettings()
        self.clock = clock or SystemClock()

    def _open(self) -> RateLimitStatus:
        return RateLimitStatus(allowed=True, remaining_attempts=self.settings.max_attempts)

    def _lockout_left(self, state: AttemptState | None) -> int:
        if state is None or state.lockout_until is None:
            return 0
        left = (state.lockout_until - self.clock.now()).total_seconds()
        return max(0, math.ceil(left))

    def _stale(self, state: AttemptState | None) -> bool:
        """A finished lockout, or a full counter whose lock marker already lapsed."""
        if state is None:
            return False
        if state.lockout_until is not None:
            return self._lockout_left(state) == 0
        return state.attempt_count >= self.settings.max_attempts

    def status(self, ip: str, action: str = LOGIN_ACTION) -> RateLimitStatus:
        """Read-only view of the pair's state."""
        try:
            state = self.store.get(ip, action, now=self.clock.now())
        except StoreError:
            log.warning("rate_limit.status_failed", extra={"ip_address": ip}, exc_info=True)
            return self._open()
        if state is None or self._stale(state):
            return self._open()
        left = self._lockout_left(state)
        if left > 0:
            return RateLimitStatus(allowed=False, remaining_attempts=0, lockout_seconds=left)
        remaining = max(0, self.settings.max_attempts - state.attempt_count)
        return RateLimitStatus(allowed=True, remaining_attempts=remaining)

    def hit(self, ip: str, action: str = LOGIN_ACTION) -> RateLimitStatus:
        """Record one failed attempt and return the resulting state."""
        now = self.clock.now()
        try:
            if self._stale(self.store.get(ip, action, now=now)):
                self.store.reset(ip, action)
            count = self.store.increment(ip, action, now=now)
            if count >= self.settings.max_attempts:
                until = now + self.settings.lockout
                self.store.lock(ip, action, until=until, now=now)
                log.warning(
                    "rate_limit.locked",
                    extra={"ip_address": ip, "action": action, "count": count},
                )
                return RateLimitStatus(
                    allowed=False,
                    remaining_attempts=0,
                    lockout_seconds=int(self.settings.lockout.total_seconds()),
                )
        except StoreError:
            log.warning("rate_limit.hit_failed", extra={"ip_address": ip}, exc_info=True)
            return self._open()
        return RateLimitStatus(
            allowed=True, remaining_attempts=self.settings.max_attempts - count
        )

    def reset(self, ip: str, action: str = LOGIN_ACTION) -> None:
        """Forget the pair, typically after a successful login."""
        try:
            self.store.reset(ip, action)
        except StoreError:
            log.warning("rate_limit.reset_failed", extra={"ip_address": ip}, exc_info=True)
