# authcore/services/rate_limit/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

LOGIN_ACTION = "login"


@dataclass(frozen=True, slots=True)
class RateLimitSettings:
    """
    :param max_attempts: Attempts allowed before a lockout starts.
    :param lockout: Lockout duration.
    """

    max_attempts: int = 5
    lockout: timedelta = timedelta(minutes=30)

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> RateLimitSettings:
        return cls(
            max_attempts=int(cfg.get("MAX_LOGIN_ATTEMPTS", 5)),
            lockout=timedelta(minutes=int(cfg.get("LOCKOUT_MINUTES", 30))),
        )


@dataclass(frozen=True, slots=True)
class RateLimitStatus:
    """
    :param allowed: Whether another attempt may proceed.
    :param remaining_attempts: Attempts left before a lockout.
    :param lockout_seconds: Seconds until the lockout ends (0 when allowed).
    """

    allowed: bool
    remaining_attempts: int
    lockout_seconds: int = 0
