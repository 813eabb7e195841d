"""User repository for lookups, password updates and token versioning."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select, update

from authcore.models.user import User
from authcore.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER handles JWT or session creation, only DB-level user state.
    """

    model = User

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def update_password(self, user_id: int, new_password: str) -> bool:
        """Hash and store a new password; the model setter does the hashing.

        :returns: ``False`` when the user does not exist.
        """
        user = self.get(user_id)
        if user is None:
            return False
        user.password = new_password
        self.flush()
        return True

    # ---------------------------- JWT ----------------------------

    def get_token_version(self, user_id: int) -> int | None:
        """
        Return current token_version for the given user, ``None`` if absent.
        """
        stmt = select(User.token_version).where(User.id == user_id)
        value = self.session.execute(stmt).scalar_one_or_none()
        return None if value is None else int(value)

    def bump_token_version(self, user_id: int) -> int | None:
        """
        Atomically increment token_version.

        A single ``UPDATE ... SET token_version = token_version + 1`` keeps
        concurrent bumps from losing increments; the new value is re-read
        because ``RETURNING`` is not portable.

        :returns: New token_version, or ``None`` when the user does not exist.
        """
        stmt = (
            update(User.__table__)
            .where(User.__table__.c.id == user_id)
            .values(token_version=User.__table__.c.token_version + 1)
        )
        result = self.session.execute(stmt)
        if int(result.rowcount or 0) == 0:
            return None
        return self.get_token_version(user_id)
