"""
Composition root for the service layer.

Builds signers, adapters and services once per application from its config
and stores them under ``app.extensions["authcore"]``. Request-scoped services
(those carrying a :class:`ServiceContext`) are created on demand.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from flask import Flask, current_app

from authcore.infra.jwt import HS256TokenSigner
from authcore.infra.redis import RedisRateLimitStore
from authcore.infra.sql import (
    SQLInvitationRepository,
    SQLRateLimitStore,
    SQLTokenBlacklist,
    SQLTokenStore,
    SQLUserDirectory,
)
from authcore.services._shared.base import ServiceContext
from authcore.services._shared.ports import Clock, RateLimitStore, SystemClock, UserDirectory
from authcore.services.audit.service import AuthAuditLog
from authcore.services.auth.service import AuthService
from authcore.services.invitations.dto import InvitationSettings
from authcore.services.invitations.service import InvitationService
from authcore.services.rate_limit.dto import RateLimitSettings
from authcore.services.rate_limit.service import RateLimiter
from authcore.services.tokens.dto import TokenSettings
from authcore.services.tokens.service import TokenService

log = logging.getLogger(__name__)

EXTENSION_KEY = "authcore"


@dataclass(slots=True)
class Services:
    """Application-wide service instances."""

    clock: Clock
    users: UserDirectory
    tokens: TokenService
    invitations: InvitationService
    limiter: RateLimiter

    def auth(self, ctx: ServiceContext) -> AuthService:
        return AuthService(
            tokens=self.tokens,
            users=self.users,
            limiter=self.limiter,
            audit=self.audit(ctx),
            ctx=ctx,
        )

    def audit(self, ctx: ServiceContext) -> AuthAuditLog:
        return AuthAuditLog(clock=self.clock, ctx=ctx)


def build_services(app: Flask, *, clock: Clock | None = None) -> Services:
    """Wire every port to its configured adapter."""
    cfg = app.config
    clock = clock or SystemClock()

    token_settings = TokenSettings.from_mapping(cfg)
    if not token_settings.access_secret:
        log.warning("JWT_ACCESS_SECRET is not set; token issuance will fail")
    access_signer = HS256TokenSigner(
        secret=token_settings.access_secret,
        issuer=token_settings.issuer,
        audience=token_settings.access_audience,
        clock=clock,
    )
    refresh_signer = HS256TokenSigner(
        secret=token_settings.refresh_secret,
        issuer=token_settings.issuer,
        audience=token_settings.refresh_audience,
        clock=clock,
    )

    token_store = SQLTokenStore(clock=clock)
    users = SQLUserDirectory()
    tokens = TokenService(
        access_signer=access_signer,
        refresh_signer=refresh_signer,
        token_store=token_store,
        blacklist=SQLTokenBlacklist(token_store, clock=clock),
        users=users,
        settings=token_settings,
        clock=clock,
    )

    rl_settings = RateLimitSettings.from_mapping(cfg)
    rl_store: RateLimitStore
    client = app.extensions.get("redis_client")
    if client is not None:
        rl_store = RedisRateLimitStore(
            r=client, window_seconds=int(rl_settings.lockout.total_seconds())
        )
    else:
        rl_store = SQLRateLimitStore()

    return Services(
        clock=clock,
        users=users,
        tokens=tokens,
        invitations=InvitationService(
            repo=SQLInvitationRepository(),
            settings=InvitationSettings.from_mapping(cfg),
            clock=clock,
        ),
        limiter=RateLimiter(store=rl_store, settings=rl_settings, clock=clock),
    )


def init_app(app: Flask, *, clock: Clock | None = None) -> Services:
    """Build the services and register them on ``app``."""
    services = build_services(app, clock=clock)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> Services:
    """Return the services of the current application."""
    try:
        return current_app.extensions[EXTENSION_KEY]
    except KeyError as exc:
        raise RuntimeError("Services are not initialized. Call init_app() first.") from exc
