"""SQLAlchemy adapter for :class:`~authcore.services._shared.ports.UserDirectory`."""

from __future__ import annotations

from werkzeug.security import check_password_hash

from authcore.models.user import User
from authcore.services._shared.errors import NotFoundError
from authcore.services._shared.ports import UserDirectory, UserRecord
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from ._errors import store_errors


def _record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        email=user.email,
        role=user.role.value,
        verified=user.verified,
        token_version=user.token_version,
        password_hash=user.password_hash,
    )


class SQLUserDirectory(UserDirectory):
    """Read users from ``users``; writes are the version bump and password changes."""

    def get_by_id(self, user_id: int) -> UserRecord | None:
        with store_errors("users.get"), SQLAlchemyReadOnlyUnitOfWork() as uow:
            user = uow.users.get(user_id)
            return _record(user) if user else None

    def get_by_email(self, email: str) -> UserRecord | None:
        with store_errors("users.get_by_email"), SQLAlchemyReadOnlyUnitOfWork() as uow:
            user = uow.users.get_by_email(email)
            return _record(user) if user else None

    def get_token_version(self, user_id: int) -> int | None:
        with store_errors("users.token_version"), SQLAlchemyReadOnlyUnitOfWork() as uow:
            return uow.users.get_token_version(user_id)

    def bump_token_version(self, user_id: int) -> int:
        with store_errors("users.bump_token_version"), SQLAlchemyUnitOfWork() as uow:
            version = uow.users.bump_token_version(user_id)
        if version is None:
            raise NotFoundError("User", user_id)
        return version

    def verify_password(self, plain: str, password_hash: str) -> bool:
        return bool(password_hash) and check_password_hash(password_hash, plain)

    def set_password(self, user_id: int, plain: str) -> None:
        with store_errors("users.set_password"), SQLAlchemyUnitOfWork() as uow:
            updated = uow.users.update_password(user_id, plain)
        if not updated:
            raise NotFoundError("User", user_id)
