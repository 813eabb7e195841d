# authcore/services/tokens/service.py
from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime
from typing import Any

from authcore.models.blacklist import BlacklistReason
from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import IssuanceError, StoreError
from authcore.services._shared.ports import (
    Clock,
    SystemClock,
    TokenBlacklist,
    TokenSigner,
    TokenStore,
    UserDirectory,
    UserRecord,
    hash_token,
)
from authcore.services._shared.results import TokenErrorKind, TokenResult
from authcore.services.tokens.dto import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    InvalidationOut,
    TokenClaims,
    TokenPairOut,
    TokenSettings,
)

log = logging.getLogger(__name__)


def _new_jti() -> str:
    # 128 bits
    return secrets.token_hex(16)


def _claims_from(payload: dict[str, Any]) -> TokenClaims | None:
    """Coerce verified wire claims into :class:`TokenClaims`; ``None`` if mistyped."""
    try:
        return TokenClaims(
            user_id=int(payload["sub"]),
            email=payload.get("email"),
            role=str(payload["role"]),
            token_version=int(payload.get("tvr", 0)),
            jti=str(payload["jti"]),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), UTC),
            token_type=str(payload.get("type", ACCESS_TOKEN_TYPE)),
        )
    except (KeyError, TypeError, ValueError):
        return None


class TokenService(BaseService):
    """
    Token lifecycle: issuance, validation, rotation and bulk invalidation.

    Validation never mutates state and never raises for a bad token: every
    outcome is a :class:`TokenResult`. Exactly-once decisions (rotation) are
    delegated to the blacklist's idempotent insert.

    :param access_signer: Signer bound to the access secret/audience.
    :param refresh_signer: Signer bound to the refresh secret/audience.
    :param token_store: Issued-token metadata.
    :param blacklist: Revocation ledger.
    :param users: User directory (token versions).
    :param settings: TTLs and feature flags.
    :param clock: Time source shared with the signers.
    """

    def __init__(
        self,
        *,
        access_signer: TokenSigner,
        refresh_signer: TokenSigner,
        token_store: TokenStore,
        blacklist: TokenBlacklist,
        users: UserDirectory,
        settings: TokenSettings,
        clock: Clock | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.access_signer = access_signer
        self.refresh_signer = refresh_signer
        self.token_store = token_store
        self.blacklist = blacklist
        self.users = users
        self.settings = settings
        self.clock = clock or SystemClock()

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def issue_pair(self, user: UserRecord) -> TokenPairOut:
        """
        Mint an access/refresh pair and persist its metadata.

        :param user: Subject; ``id`` must be set.
        :returns: Encoded tokens with their expiries.
        :raises IssuanceError: If the user has no id.
        :raises StoreError: If the metadata cannot be persisted.
        :raises ConfigError: If a signing secret is missing.
        """
        if user.id is None:
            raise IssuanceError("Cannot issue tokens without a user id")

        now = int(self.clock.now().timestamp())
        access_exp = now + int(self.settings.access_ttl.total_seconds())
        refresh_exp = now + int(self.settings.refresh_ttl.total_seconds())
        base = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "tvr": user.token_version,
            "iat": now,
        }
        access_jti, refresh_jti = _new_jti(), _new_jti()
        access = self.access_signer.sign(
            {**base, "jti": access_jti, "exp": access_exp, "type": ACCESS_TOKEN_TYPE}
        )
        refresh = self.refresh_signer.sign(
            {**base, "jti": refresh_jti, "exp": refresh_exp, "type": REFRESH_TOKEN_TYPE}
        )

        access_at = datetime.fromtimestamp(access_exp, UTC)
        refresh_at = datetime.fromtimestamp(refresh_exp, UTC)
        try:
            self.token_store.upsert(
                user_id=user.id,
                access_hash=hash_token(access),
                access_exp=access_at,
                access_jti=access_jti,
                refresh_hash=hash_token(refresh),
                refresh_exp=refresh_at,
                refresh_jti=refresh_jti,
            )
        except StoreError:
            log.error("token.issue_failed", extra={"user_id": user.id}, exc_info=True)
            raise

        log.info("token.issued", extra={"user_id": user.id, "jti": access_jti})
        return TokenPairOut(
            access_token=access,
            refresh_token=refresh,
            access_expires_at=access_at,
            refresh_expires_at=refresh_at,
        )

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate_access(self, token: str) -> TokenResult[TokenClaims]:
        """
        Full check of an access token: signature, expiry, type, token
        version, blacklist and (optionally) the token store. A bumped version
        reports ``VERSION_STALE`` even when the jti was also swept.

        Store failures fail closed with ``STORE_ERROR``.
        """
        verified = self.access_signer.verify(token)
        if not verified.ok:
            return TokenResult.failure(verified.error, verified.detail)  # type: ignore[arg-type]

        claims = _claims_from(verified.unwrap())
        if claims is None:
            return TokenResult.failure(TokenErrorKind.INVALID_CLAIMS, "mistyped claims")
        if claims.token_type != ACCESS_TOKEN_TYPE:
            return TokenResult.failure(TokenErrorKind.WRONG_TYPE, claims.token_type)

        try:
            current = self.users.get_token_version(claims.user_id)
            if current is None:
                return TokenResult.failure(TokenErrorKind.REVOKED, "unknown user")
            if current != claims.token_version:
                return TokenResult.failure(TokenErrorKind.VERSION_STALE)
            if self.blacklist.contains(claims.jti):
                return TokenResult.failure(TokenErrorKind.REVOKED, "blacklisted")
            if self.settings.strict_store and not self.token_store.is_active(hash_token(token)):
                return TokenResult.failure(TokenErrorKind.REVOKED, "not in token store")
        except StoreError as exc:
            log.warning("token.validate_store_error", extra={"jti": claims.jti}, exc_info=exc)
            return TokenResult.failure(TokenErrorKind.STORE_ERROR, exc.operation)

        return TokenResult.success(claims)

    # ------------------------------------------------------------------ #
    # Rotation
    # ------------------------------------------------------------------ #

    def rotate(self, refresh_token: str) -> TokenResult[TokenPairOut]:
        """
        Exchange a refresh token for a new pair, exactly once.

        The old ``jti`` is claimed in the blacklist *before* minting. Of two
        concurrent calls with the same token only the one whose insert created
        the entry proceeds; the other (and any later replay) gets ``REVOKED``.
        If minting then fails the caller is left without a refresh token and
        must log in again.
        """
        verified = self.refresh_signer.verify(refresh_token)
        if not verified.ok:
            return TokenResult.failure(verified.error, verified.detail)  # type: ignore[arg-type]

        claims = _claims_from(verified.unwrap())
        if claims is None:
            return TokenResult.failure(TokenErrorKind.INVALID_CLAIMS, "mistyped claims")
        if claims.token_type != REFRESH_TOKEN_TYPE:
            return TokenResult.failure(TokenErrorKind.WRONG_TYPE, claims.token_type)

        try:
            user = self.users.get_by_id(claims.user_id)
            if user is None:
                return TokenResult.failure(TokenErrorKind.REVOKED, "unknown user")
            if user.token_version != claims.token_version:
                return TokenResult.failure(TokenErrorKind.VERSION_STALE)
            claimed = self.blacklist.add(
                jti=claims.jti,
                user_id=claims.user_id,
                original_exp=claims.expires_at,
                reason=BlacklistReason.TOKEN_ROTATION.value,
            )
        except StoreError as exc:
            log.warning("token.rotate_store_error", extra={"jti": claims.jti}, exc_info=exc)
            return TokenResult.failure(TokenErrorKind.STORE_ERROR, exc.operation)

        if not claimed:
            log.warning(
                "token.refresh_reuse",
                extra={"user_id": claims.user_id, "jti": claims.jti},
            )
            if self.settings.revoke_all_on_reuse:
                try:
                    self.invalidate_all(claims.user_id, BlacklistReason.SECURITY.value)
                except StoreError:
                    log.error("token.reuse_response_failed", exc_info=True)
            return TokenResult.failure(TokenErrorKind.REVOKED, "refresh token reused")

        try:
            pair = self.issue_pair(user)
        except StoreError as exc:
            return TokenResult.failure(TokenErrorKind.STORE_ERROR, exc.operation)
        log.info("token.rotated", extra={"user_id": claims.user_id, "jti": claims.jti})
        return TokenResult.success(pair)

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def invalidate_all(self, user_id: int, reason: str = "security") -> InvalidationOut:
        """
        Kill every outstanding token of ``user_id``.

        Bumps the token version first (immediate effect for every token ever
        issued), then blacklists the jtis recorded in the store and finally
        revokes the store rows. Each step is idempotent, so a retry after a
        partial failure is safe.

        :raises NotFoundError: If the user does not exist.
        :raises StoreError: If any step fails; retry the whole call.
        """
        version = self.users.bump_token_version(user_id)
        blacklisted = self.blacklist.add_all_active_for_user(user_id, reason)
        revoked = self.token_store.revoke_all(user_id, reason)
        log.info(
            "token.invalidated_all",
            extra={"user_id": user_id, "reason": reason, "count": blacklisted},
        )
        return InvalidationOut(
            user_id=user_id,
            token_version=version,
            blacklisted=blacklisted,
            revoked_rows=revoked,
        )

    def revoke_pair(
        self,
        access_token: str,
        refresh_token: str | None = None,
        reason: str = "logout",
    ) -> int:
        """
        Single-session logout: blacklist the given tokens and revoke their row.

        Expired tokens are still accepted; forged ones are ignored.

        :returns: Number of blacklist entries created.
        """
        created = 0
        for signer, token in (
            (self.access_signer, access_token),
            (self.refresh_signer, refresh_token),
        ):
            if not token:
                continue
            verified = signer.verify(token, allow_expired=True)
            claims = _claims_from(verified.value) if verified.ok and verified.value else None
            if claims is None:
                log.warning("token.revoke_skipped", extra={"reason": str(verified.error)})
                continue
            if self.blacklist.add(
                jti=claims.jti,
                user_id=claims.user_id,
                original_exp=claims.expires_at,
                reason=reason,
            ):
                created += 1
            self.token_store.revoke(hash_token(token), reason)
        return created

    # ------------------------------------------------------------------ #
    # Activity
    # ------------------------------------------------------------------ #

    def touch(self, access_token: str) -> bool:
        """Best-effort ``last_used_at`` stamp, kept out of :meth:`validate_access`."""
        try:
            return self.token_store.mark_used(hash_token(access_token))
        except StoreError:
            log.warning("token.touch_failed", exc_info=True)
            return False
