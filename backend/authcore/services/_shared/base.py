# authcore/services/_shared/base.py
from __future__ import annotations

from dataclasses import dataclass

from authcore.core import errors as api_errors
from authcore.services._shared.errors import (
    AccountLocked,
    AuthorizationError,
    ConfigError,
    ConflictError,
    InvalidCredentials,
    InvitationExpired,
    InvitationNotFound,
    InvitationUsed,
    IssuanceError,
    NotFoundError,
    ServiceError,
    StoreError,
    TokenRejected,
)
from authcore.services._shared.results import TokenErrorKind


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param actor_id: Authenticated user identifier.
    :param request_id: Correlation id for logging/tracing.
    :param ip_address: Client address (after proxy resolution).
    :param user_agent: Raw ``User-Agent`` header.
    """

    actor_id: int | None = None
    request_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Hold the request-scoped :class:`ServiceContext`.
    * Centralize error translation to API errors.

    Notes
    -----
    - Services never touch the session; persistence goes through ports whose
      SQL adapters own their units of work.
    - Services never read Flask config; settings objects are injected.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context.
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        Token failures keep a generic message; only expiry gets its own code
        because clients need it to decide whether to refresh.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, TokenRejected):
            if exc.kind is TokenErrorKind.EXPIRED:
                return api_errors.Unauthorized("Token expired", code="token_expired")
            if exc.kind is TokenErrorKind.STORE_ERROR:
                return api_errors.InternalError()
            return api_errors.Unauthorized("Invalid token", code="invalid_token")

        if isinstance(exc, InvalidCredentials):
            return api_errors.Unauthorized("Invalid credentials", code="invalid_credentials")

        if isinstance(exc, AccountLocked):
            return api_errors.TooManyRequests(retry_after=exc.retry_after)

        if isinstance(exc, AuthorizationError):
            return api_errors.Forbidden(str(exc) or "Forbidden")

        if isinstance(exc, InvitationNotFound):
            return api_errors.NotFound("Invitation not found", code="invitation_not_found")

        if isinstance(exc, InvitationUsed):
            code = "invitation_used_by_other" if exc.by_other else "invitation_already_used"
            return api_errors.Gone("Invitation already used", code=code)

        if isinstance(exc, InvitationExpired):
            return api_errors.Gone("Invitation expired", code="invitation_expired")

        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, StoreError | ConfigError | IssuanceError):
            # → 500, details stay in the logs
            return api_errors.InternalError()

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
