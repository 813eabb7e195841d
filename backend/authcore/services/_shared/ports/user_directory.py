from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from authcore.services._shared.errors import NotFoundError


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Snapshot of the user fields the token core needs.

    :ivar id: User id (``sub`` claim).
    :ivar email: Normalized email.
    :ivar role: ``"admin"`` or ``"client"``.
    :ivar verified: Whether the account may log in.
    :ivar token_version: Current version (``tvr`` claim).
    :ivar password_hash: Opaque hash for :meth:`UserDirectory.verify_password`.
    """

    id: int | None
    email: str
    role: str
    verified: bool = True
    token_version: int = 0
    password_hash: str = ""


class UserDirectory(Protocol):
    """
    Collaborator owning user persistence.

    The token core reads users and writes only ``token_version`` and, on a
    password change, the password hash.
    """

    def get_by_id(self, user_id: int) -> UserRecord | None: ...
    def get_by_email(self, email: str) -> UserRecord | None: ...
    def get_token_version(self, user_id: int) -> int | None: ...
    def bump_token_version(self, user_id: int) -> int: ...  # NotFoundError if absent
    def verify_password(self, plain: str, password_hash: str) -> bool: ...
    def set_password(self, user_id: int, plain: str) -> None: ...  # NotFoundError if absent


class InMemoryUserDirectory(UserDirectory):
    """Dictionary-backed directory for unit tests."""

    def __init__(self, users: list[UserRecord] | None = None) -> None:
        self._users: dict[int, UserRecord] = {}
        self._seq = 0
        self._lock = threading.Lock()
        for user in users or []:
            self.add(user)

    def add(self, user: UserRecord) -> UserRecord:
        with self._lock:
            if user.id is None:
                self._seq += 1
                user = replace(user, id=self._seq)
            else:
                self._seq = max(self._seq, user.id)
            self._users[int(user.id)] = user  # type: ignore[arg-type]
            return user

    def create(self, email: str, password: str, *, role: str = "client", **kw) -> UserRecord:
        """Hash ``password`` and add a new user."""
        return self.add(
            UserRecord(
                id=None,
                email=email.strip().lower(),
                role=role,
                password_hash=generate_password_hash(password),
                **kw,
            )
        )

    def get_by_id(self, user_id: int) -> UserRecord | None:
        return self._users.get(user_id)

    def get_by_email(self, email: str) -> UserRecord | None:
        needle = email.strip().lower()
        return next((u for u in self._users.values() if u.email == needle), None)

    def get_token_version(self, user_id: int) -> int | None:
        user = self._users.get(user_id)
        return None if user is None else user.token_version

    def bump_token_version(self, user_id: int) -> int:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            self._users[user_id] = replace(user, token_version=user.token_version + 1)
            return user.token_version + 1

    def verify_password(self, plain: str, password_hash: str) -> bool:
        return bool(password_hash) and bool(check_password_hash(password_hash, plain))

    def set_password(self, user_id: int, plain: str) -> None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            self._users[user_id] = replace(user, password_hash=generate_password_hash(plain))
