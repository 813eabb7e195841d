"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from authcore.core.errors import Forbidden, Unauthorized
from authcore.core.logger import ensure_request_id
from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import TokenRejected
from authcore.services.registry import get_services
from authcore.services.tokens.dto import TokenClaims

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


# ------------------------------ Request context ---------------------------- #


def client_ip() -> str:
    """Client address as resolved by ProxyFix (``remote_addr``)."""

    return request.remote_addr or "unknown"


def service_context() -> ServiceContext:
    """Build the request-scoped :class:`ServiceContext`."""

    claims = cast(TokenClaims | None, g.get("claims"))
    return ServiceContext(
        actor_id=claims.user_id if claims else None,
        request_id=ensure_request_id(),
        ip_address=client_ip(),
        user_agent=request.headers.get("User-Agent"),
    )


def bearer_token() -> str | None:
    """Extract the token from ``Authorization: Bearer <token>``."""

    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def current_claims() -> TokenClaims:
    """Claims stored by :func:`require_auth`."""

    claims = g.get("claims")
    if claims is None:
        raise Unauthorized("Authentication required", code="unauthorized")
    return cast(TokenClaims, claims)


# ------------------------------ Guards ------------------------------------- #


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token.

    The token goes through the full stateful check (signature, expiry,
    blacklist, token version). Failures are translated to 401 problems.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            raise Unauthorized("Missing bearer token", code="invalid_token")
        try:
            claims = get_services().tokens.validate_access(token).unwrap()
        except TokenRejected as exc:
            current_app.logger.info("auth.token_rejected", extra={"reason": exc.kind.value})
            raise BaseService.translate_exceptions(exc) from exc
        g.claims = claims
        g.access_token = token
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_role(role: str) -> Callable[[F], F]:
    """Ensure the authenticated caller carries ``role`` (implies :func:`require_auth`)."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def inner(*args: Any, **kwargs: Any):
            if current_claims().role != role:
                raise Forbidden("Insufficient role", code="forbidden")
            return func(*args, **kwargs)

        return require_auth(inner)  # type: ignore[return-value]

    return decorator
