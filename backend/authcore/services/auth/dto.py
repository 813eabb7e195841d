# authcore/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from authcore.services.tokens.dto import InvalidationOut, TokenPairOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param access_token: Bearer token of the request.
    :param refresh_token: Refresh token, when the client still has it.
    :param all_sessions: If True, invalidate every token of the user.
    """

    access_token: str
    refresh_token: str | None = None
    all_sessions: bool = False


@dataclass(frozen=True, slots=True)
class PasswordChangeIn:
    """
    Input DTO for changing the caller's password.

    :param user_id: Authenticated user (``sub`` of the access token).
    :param current_password: Password the caller claims to have.
    :param new_password: Raw replacement password.
    """

    user_id: int
    current_password: str
    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthUserOut:
    id: int
    email: str
    role: str


@dataclass(frozen=True, slots=True)
class LoginOut:
    """Authenticated user plus the freshly issued pair."""

    user: AuthUserOut
    tokens: TokenPairOut


@dataclass(frozen=True, slots=True)
class LogoutOut:
    """
    :param all_sessions: Which logout flavour ran.
    :param revoked: Blacklist entries created.
    """

    all_sessions: bool
    revoked: int


@dataclass(frozen=True, slots=True)
class PasswordChangeOut:
    """
    :param tokens: Fresh pair for the caller, signed with the new version.
    :param invalidation: What the sweep of the old tokens did.
    """

    tokens: TokenPairOut
    invalidation: InvalidationOut
