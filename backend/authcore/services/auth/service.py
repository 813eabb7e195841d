# authcore/services/auth/service.py
from __future__ import annotations

import logging

from authcore.models.blacklist import BlacklistReason
from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import (
    AccountLocked,
    InvalidCredentials,
    NotFoundError,
    ServiceError,
)
from authcore.services._shared.ports import UserDirectory, UserRecord
from authcore.services.audit.service import AuthAuditLog
from authcore.services.auth.dto import (
    AuthUserOut,
    LoginIn,
    LoginOut,
    LogoutIn,
    LogoutOut,
    PasswordChangeIn,
    PasswordChangeOut,
)
from authcore.services.rate_limit.service import RateLimiter
from authcore.services.tokens.dto import TokenClaims, TokenPairOut
from authcore.services.tokens.service import TokenService

log = logging.getLogger(__name__)

LOGIN = "login"
ADMIN_LOGIN = "admin_login"
UNKNOWN_IP = "unknown"


class AuthService(BaseService):
    """
    Login / refresh / logout / password change orchestration for the HTTP layer.

    Credential checks are deliberately uniform: unknown email, wrong
    password, unverified account and (for the admin entry point) missing
    role all raise the same :class:`InvalidCredentials`.

    :param tokens: Token lifecycle service.
    :param users: User directory.
    :param limiter: Per-IP attempt limiter.
    :param audit: Audit trail writer bound to the same request context.
    """

    def __init__(
        self,
        *,
        tokens: TokenService,
        users: UserDirectory,
        limiter: RateLimiter,
        audit: AuthAuditLog | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.tokens = tokens
        self.users = users
        self.limiter = limiter
        self.audit = audit or AuthAuditLog(ctx=self.ctx)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def _check_credentials(self, dto: LoginIn, *, require_admin: bool) -> UserRecord | None:
        user = self.users.get_by_email(dto.email)
        if user is None or not self.users.verify_password(dto.password, user.password_hash):
            return None
        if not user.verified:
            return None
        if require_admin and user.role != "admin":
            return None
        return user

    def login(self, dto: LoginIn, *, require_admin: bool = False) -> LoginOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :param require_admin: Admin entry point; non-admins get the generic error.
        :raises AccountLocked: While the caller's address is locked out.
        :raises InvalidCredentials: For any credential failure.
        """
        action = ADMIN_LOGIN if require_admin else LOGIN
        ip = self.ctx.ip_address or UNKNOWN_IP

        gate = self.limiter.status(ip, action)
        if not gate.allowed:
            self.audit.record(action, "failure", reason="locked_out")
            raise AccountLocked(retry_after=gate.lockout_seconds)

        user = self._check_credentials(dto, require_admin=require_admin)
        if user is None or user.id is None:
            after = self.limiter.hit(ip, action)
            self.audit.record(
                action,
                "failure",
                reason="invalid_credentials",
                remaining_attempts=after.remaining_attempts,
            )
            log.warning("auth.login_failed", extra={"ip_address": ip, "action": action})
            raise InvalidCredentials()

        self.limiter.reset(ip, action)
        pair = self.tokens.issue_pair(user)
        self.audit.record(action, "success", user_id=user.id)
        return LoginOut(user=AuthUserOut(id=user.id, email=user.email, role=user.role), tokens=pair)

    # ------------------------------------------------------------------ #
    # Refresh / logout
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str) -> TokenPairOut:
        """
        Rotate ``refresh_token``.

        :raises TokenRejected: When rotation is refused.
        """
        result = self.tokens.rotate(refresh_token)
        if result.error is not None:
            self.audit.record("refresh", "failure", reason=result.error.value)
        return result.unwrap()

    def logout(self, claims: TokenClaims, dto: LogoutIn) -> LogoutOut:
        """Revoke the current pair, or every session with ``all_sessions``."""
        if dto.all_sessions:
            out = self.tokens.invalidate_all(claims.user_id, BlacklistReason.LOGOUT.value)
            revoked = out.blacklisted
        else:
            revoked = self.tokens.revoke_pair(
                dto.access_token, dto.refresh_token, BlacklistReason.LOGOUT.value
            )
        self.audit.record(
            "logout", "success", user_id=claims.user_id, all_sessions=dto.all_sessions
        )
        return LogoutOut(all_sessions=dto.all_sessions, revoked=revoked)

    # ------------------------------------------------------------------ #
    # Password change
    # ------------------------------------------------------------------ #

    def change_password(self, dto: PasswordChangeIn) -> PasswordChangeOut:
        """
        Replace the caller's password and kill every token issued before.

        The current password is checked first. After the new hash is stored,
        :meth:`TokenService.invalidate_all` runs with reason
        ``password_change`` and a fresh pair is issued for the caller, so
        only the session that made the change stays logged in.

        :raises NotFoundError: If the user vanished since the token was issued.
        :raises InvalidCredentials: If ``current_password`` is wrong.
        :raises ServiceError: If the new password equals the current one.
        """
        user = self.users.get_by_id(dto.user_id)
        if user is None:
            raise NotFoundError("User", dto.user_id)

        if not self.users.verify_password(dto.current_password, user.password_hash):
            self.audit.record(
                "password_change", "failure", user_id=dto.user_id, reason="invalid_password"
            )
            raise InvalidCredentials("Current password is incorrect")
        if dto.new_password == dto.current_password:
            raise ServiceError("New password must differ from the current one.")

        self.users.set_password(dto.user_id, dto.new_password)
        invalidation = self.tokens.invalidate_all(
            dto.user_id, BlacklistReason.PASSWORD_CHANGE.value
        )
        refreshed = self.users.get_by_id(dto.user_id)
        if refreshed is None:
            raise NotFoundError("User", dto.user_id)
        pair = self.tokens.issue_pair(refreshed)

        self.audit.record(
            "password_change",
            "success",
            user_id=dto.user_id,
            blacklisted=invalidation.blacklisted,
        )
        log.info("auth.password_changed", extra={"user_id": dto.user_id})
        return PasswordChangeOut(tokens=pair, invalidation=invalidation)
