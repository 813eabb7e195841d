from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol

from authcore.services._shared.ports.clock import Clock, SystemClock


def hash_token(token: str) -> str:
    """Return the SHA-256 hex digest stored in place of a wire token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class IssuedTokenView:
    """
    Read-model of one issued-token row.

    :ivar user_id: Owner.
    :ivar access_jti: ``jti`` of the access token (``None`` on legacy rows).
    :ivar access_exp: Access token expiry (UTC).
    :ivar refresh_jti: ``jti`` of the refresh token, if one was issued.
    :ivar refresh_exp: Refresh token expiry (UTC), if one was issued.
    :ivar revoked: Whether the row was revoked.
    """

    user_id: int
    access_jti: str | None
    access_exp: datetime
    refresh_jti: str | None
    refresh_exp: datetime | None
    revoked: bool = False


class TokenStore(Protocol):
    """
    Persistence for issued-token metadata keyed by user.

    Failures surface as :class:`~authcore.services._shared.errors.StoreError`.
    """

    def upsert(
        self,
        *,
        user_id: int,
        access_hash: str,
        access_exp: datetime,
        access_jti: str | None = None,
        refresh_hash: str | None = None,
        refresh_exp: datetime | None = None,
        refresh_jti: str | None = None,
    ) -> None:
        """Insert or replace the user's row; resets ``revoked`` and stamps ``last_used_at``."""

    def mark_used(self, token_hash: str) -> bool:
        """Stamp ``last_used_at``. :returns: True if a row matched."""

    def revoke(self, token_hash: str, reason: str) -> bool:
        """Revoke the row holding ``token_hash``; already revoked is a no-op success."""

    def revoke_all(self, user_id: int, reason: str) -> int:
        """Revoke every active row of the user. :returns: Rows affected."""

    def is_active(self, token_hash: str, *, allow_expired: bool = False) -> bool:
        """True only for a non-revoked row whose matching token has not expired."""

    def active_for_user(self, user_id: int) -> list[IssuedTokenView]:
        """Non-revoked rows with at least one unexpired token."""

    def purge(self, *, expired_before: datetime, revoked_before: datetime) -> int:
        """Delete long-expired or long-revoked rows (maintenance only)."""


@dataclass(frozen=True, slots=True)
class _Row:
    view: IssuedTokenView
    access_hash: str
    refresh_hash: str | None
    revoked_at: datetime | None = None
    revoked_reason: str | None = None
    last_used_at: datetime | None = None


class InMemoryTokenStore(TokenStore):
    """
    In-memory token store with the single-row-per-user upsert model.

    .. note::
       Uses a threading lock to simulate statement atomicity in unit tests.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or SystemClock()
        self._rows: dict[int, _Row] = {}
        self._lock = threading.Lock()

    def _find(self, token_hash: str) -> _Row | None:
        for row in self._rows.values():
            if token_hash in (row.access_hash, row.refresh_hash):
                return row
        return None

    def upsert(
        self,
        *,
        user_id: int,
        access_hash: str,
        access_exp: datetime,
        access_jti: str | None = None,
        refresh_hash: str | None = None,
        refresh_exp: datetime | None = None,
        refresh_jti: str | None = None,
    ) -> None:
        with self._lock:
            self._rows[user_id] = _Row(
                view=IssuedTokenView(
                    user_id=user_id,
                    access_jti=access_jti,
                    access_exp=access_exp,
                    refresh_jti=refresh_jti,
                    refresh_exp=refresh_exp,
                ),
                access_hash=access_hash,
                refresh_hash=refresh_hash,
                last_used_at=self.clock.now(),
            )

    def mark_used(self, token_hash: str) -> bool:
        with self._lock:
            row = self._find(token_hash)
            if row is None or row.access_hash != token_hash:
                return False
            self._rows[row.view.user_id] = replace(row, last_used_at=self.clock.now())
            return True

    def _revoke_row(self, row: _Row, reason: str) -> None:
        self._rows[row.view.user_id] = replace(
            row,
            view=replace(row.view, revoked=True),
            revoked_at=self.clock.now(),
            revoked_reason=reason,
        )

    def revoke(self, token_hash: str, reason: str) -> bool:
        with self._lock:
            row = self._find(token_hash)
            if row is None:
                return False
            if not row.view.revoked:
                self._revoke_row(row, reason)
            return True

    def revoke_all(self, user_id: int, reason: str) -> int:
        with self._lock:
            row = self._rows.get(user_id)
            if row is None or row.view.revoked:
                return 0
            self._revoke_row(row, reason)
            return 1

    def is_active(self, token_hash: str, *, allow_expired: bool = False) -> bool:
        with self._lock:
            row = self._find(token_hash)
            if row is None or row.view.revoked:
                return False
            if allow_expired:
                return True
            exp = row.view.access_exp if token_hash == row.access_hash else row.view.refresh_exp
            return exp is not None and exp > self.clock.now()

    def active_for_user(self, user_id: int) -> list[IssuedTokenView]:
        with self._lock:
            row = self._rows.get(user_id)
            if row is None or row.view.revoked:
                return []
            now = self.clock.now()
            live = row.view.access_exp > now or (
                row.view.refresh_exp is not None and row.view.refresh_exp > now
            )
            return [row.view] if live else []

    def purge(self, *, expired_before: datetime, revoked_before: datetime) -> int:
        with self._lock:
            doomed = [
                uid
                for uid, row in self._rows.items()
                if (
                    row.view.access_exp < expired_before
                    and (row.view.refresh_exp is None or row.view.refresh_exp < expired_before)
                )
                or (row.revoked_at is not None and row.revoked_at < revoked_before)
            ]
            for uid in doomed:
                del self._rows[uid]
            return len(doomed)

    # Test helper
    def get(self, user_id: int) -> IssuedTokenView | None:
        row = self._rows.get(user_id)
        return row.view if row else None
