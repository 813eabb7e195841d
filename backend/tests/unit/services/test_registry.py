# tests/unit/services/test_registry.py
from __future__ import annotations

from datetime import timedelta

import fakeredis
import pytest
from authcore.core import errors as api_errors
from authcore.infra.redis import RedisRateLimitStore
from authcore.infra.sql import SQLRateLimitStore
from authcore.services import registry
from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import (
    AccountLocked,
    AuthorizationError,
    ConfigError,
    ConflictError,
    InvalidCredentials,
    InvitationExpired,
    InvitationNotFound,
    InvitationUsed,
    NotFoundError,
    ServiceError,
    StoreError,
    TokenRejected,
)
from authcore.services._shared.results import TokenErrorKind


# ------------------------------ Composition ------------------------------- #
def test_services_follow_config(app, clock):
    app.config.update(ACCESS_TOKEN_TTL_MINUTES=5, MAX_LOGIN_ATTEMPTS=2, LOCKOUT_MINUTES=1)

    services = registry.build_services(app, clock=clock)

    assert services.tokens.settings.access_ttl == timedelta(minutes=5)
    assert services.limiter.settings.max_attempts == 2
    assert isinstance(services.limiter.store, SQLRateLimitStore)
    assert services.clock is clock


def test_redis_client_switches_the_counter_backend(app, clock):
    app.extensions["redis_client"] = fakeredis.FakeRedis()

    services = registry.build_services(app, clock=clock)

    assert isinstance(services.limiter.store, RedisRateLimitStore)
    assert services.limiter.store.window_seconds == 1800


def test_request_scoped_services_share_context(services):
    ctx = ServiceContext(ip_address="192.0.2.9")
    auth = services.auth(ctx)

    assert auth.ctx is ctx
    assert auth.audit.ctx is ctx
    assert auth.tokens is services.tokens


def test_get_services_requires_init(app):
    app.extensions.pop(registry.EXTENSION_KEY)

    with pytest.raises(RuntimeError, match="not initialized"):
        registry.get_services()


# --------------------------- Error translation ---------------------------- #
@pytest.mark.parametrize(
    ("exc", "status", "code"),
    [
        (TokenRejected(kind=TokenErrorKind.EXPIRED), 401, "token_expired"),
        (TokenRejected(kind=TokenErrorKind.REVOKED), 401, "invalid_token"),
        (TokenRejected(kind=TokenErrorKind.VERSION_STALE), 401, "invalid_token"),
        (TokenRejected(kind=TokenErrorKind.STORE_ERROR), 500, "internal_server_error"),
        (InvalidCredentials(), 401, "invalid_credentials"),
        (AccountLocked(retry_after=90), 429, "too_many_requests"),
        (AuthorizationError("nope"), 403, "forbidden"),
        (InvitationNotFound(), 404, "invitation_not_found"),
        (InvitationUsed(by_other=True), 410, "invitation_used_by_other"),
        (InvitationUsed(by_other=False), 410, "invitation_already_used"),
        (InvitationExpired(), 410, "invitation_expired"),
        (NotFoundError("User", 3), 404, "not_found"),
        (ConflictError("Invitation", "token collision"), 409, "conflict"),
        (StoreError("blacklist.add"), 500, "internal_server_error"),
        (ConfigError("no secret"), 500, "internal_server_error"),
        (ServiceError("bad input"), 400, "bad_request"),
    ],
)
def test_translate_exceptions(exc, status, code):
    translated = BaseService.translate_exceptions(exc)

    assert isinstance(translated, api_errors.APIError)
    assert translated.status_code == status
    assert translated.code == code


def test_lockout_translation_carries_retry_after():
    translated = BaseService.translate_exceptions(AccountLocked(retry_after=90))

    assert translated.headers == {"Retry-After": "90"}
    assert translated.details == {"retry_after": 90}


def test_foreign_exceptions_pass_through():
    err = KeyError("x")

    assert BaseService.translate_exceptions(err) is err
