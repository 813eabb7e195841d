"""Repository for the authentication audit trail."""

from __future__ import annotations

from authcore.models.auth_log import AuthLog
from authcore.repositories.base import BaseRepository


class AuthLogRepository(BaseRepository[AuthLog]):
    """Append-only access to :class:`AuthLog`."""

    model = AuthLog
