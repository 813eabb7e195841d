# authcore/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# ------------------------------ Settings ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Token emission and validation settings.

    :param access_secret: HMAC key for access tokens.
    :param refresh_secret: HMAC key for refresh tokens.
    :param issuer: ``iss`` claim.
    :param access_audience: ``aud`` claim of access tokens.
    :param refresh_audience: ``aud`` claim of refresh tokens.
    :param access_ttl: Access token lifetime.
    :param refresh_ttl: Refresh token lifetime.
    :param strict_store: Also require an active token-store row on validation.
    :param revoke_all_on_reuse: Invalidate every session when a rotated-out
        refresh token is replayed.
    """

    access_secret: str
    refresh_secret: str
    issuer: str = "authcore"
    access_audience: str = "authcore-app"
    refresh_audience: str = "authcore-refresh"
    access_ttl: timedelta = timedelta(minutes=30)
    refresh_ttl: timedelta = timedelta(days=7)
    strict_store: bool = False
    revoke_all_on_reuse: bool = False

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> TokenSettings:
        """Build settings from a Flask config (or any mapping)."""
        access_secret = str(cfg.get("JWT_ACCESS_SECRET") or "")
        return cls(
            access_secret=access_secret,
            refresh_secret=str(cfg.get("JWT_REFRESH_SECRET") or access_secret),
            issuer=str(cfg.get("JWT_ISSUER", "authcore")),
            access_audience=str(cfg.get("JWT_ACCESS_AUDIENCE", "authcore-app")),
            refresh_audience=str(cfg.get("JWT_REFRESH_AUDIENCE", "authcore-refresh")),
            access_ttl=timedelta(minutes=int(cfg.get("ACCESS_TOKEN_TTL_MINUTES", 30))),
            refresh_ttl=timedelta(days=int(cfg.get("REFRESH_TOKEN_TTL_DAYS", 7))),
            strict_store=bool(cfg.get("STRICT_TOKEN_STORE", False)),
            revoke_all_on_reuse=bool(cfg.get("REVOKE_ALL_ON_REFRESH_REUSE", False)),
        )


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param access_expires_at: Access token expiry (UTC).
    :param refresh_expires_at: Refresh token expiry (UTC).
    :param token_type: Always ``"Bearer"``.
    """

    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime
    token_type: str = "Bearer"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified claims of an access (or refresh) token.

    :param user_id: Subject as an integer id.
    :param email: Email at issuance time.
    :param role: ``admin`` or ``client``.
    :param token_version: ``tvr`` snapshot.
    :param jti: Token id.
    :param expires_at: ``exp`` as a UTC datetime.
    :param token_type: ``access`` or ``refresh``.
    """

    user_id: int
    email: str | None
    role: str
    token_version: int
    jti: str
    expires_at: datetime
    token_type: str = ACCESS_TOKEN_TYPE


@dataclass(frozen=True, slots=True)
class InvalidationOut:
    """
    Result of :meth:`TokenService.invalidate_all`.

    :param user_id: Target user.
    :param token_version: Version after the bump.
    :param blacklisted: Token ids newly written to the blacklist.
    :param revoked_rows: Token-store rows revoked.
    """

    user_id: int
    token_version: int
    blacklisted: int
    revoked_rows: int
