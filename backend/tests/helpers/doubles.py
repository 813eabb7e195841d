"""Failing port doubles used to exercise store-error paths."""

from __future__ import annotations

from datetime import datetime

from authcore.services._shared.errors import StoreError
from authcore.services._shared.ports import (
    AttemptState,
    InMemoryTokenBlacklist,
    InMemoryTokenStore,
    RateLimitStore,
)


class BrokenBlacklist(InMemoryTokenBlacklist):
    """Blacklist whose reads and writes always fail."""

    def add(self, *, jti: str, user_id: int, original_exp: datetime, reason: str) -> bool:
        raise StoreError("blacklist.add")

    def contains(self, jti: str) -> bool:
        raise StoreError("blacklist.contains")


class BrokenTokenStore(InMemoryTokenStore):
    """Token store that cannot persist anything."""

    def upsert(self, **kwargs) -> None:
        raise StoreError("token_store.upsert")

    def mark_used(self, token_hash: str) -> bool:
        raise StoreError("token_store.mark_used")


class BrokenRateLimitStore(RateLimitStore):
    """Counter backend that is always down."""

    def get(self, ip: str, action: str, *, now: datetime) -> AttemptState | None:
        raise StoreError("rate_limits.get")

    def increment(self, ip: str, action: str, *, now: datetime) -> int:
        raise StoreError("rate_limits.increment")

    def lock(self, ip: str, action: str, *, until: datetime, now: datetime) -> None:
        raise StoreError("rate_limits.lock")

    def reset(self, ip: str, action: str) -> None:
        raise StoreError("rate_limits.reset")
