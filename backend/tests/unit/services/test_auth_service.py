# tests/unit/services/test_auth_service.py
from __future__ import annotations

from datetime import timedelta

import pytest
from authcore.infra.jwt import HS256TokenSigner
from authcore.services._shared.base import ServiceContext
from authcore.services._shared.errors import (
    AccountLocked,
    InvalidCredentials,
    NotFoundError,
    ServiceError,
    TokenRejected,
)
from authcore.services._shared.ports import (
    InMemoryRateLimitStore,
    InMemoryTokenBlacklist,
    InMemoryTokenStore,
    InMemoryUserDirectory,
)
from authcore.services._shared.results import TokenErrorKind
from authcore.services.auth import AuthService, LoginIn, LogoutIn, PasswordChangeIn
from authcore.services.rate_limit import RateLimiter, RateLimitSettings
from authcore.services.tokens import TokenService, TokenSettings

PASSWORD = "s3cret-Passw0rd"
IP = "192.0.2.10"


class RecordingAudit:
    """Stand-in for :class:`AuthAuditLog` that keeps events in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, int | None, dict]] = []

    def record(self, action, status, user_id=None, **details) -> bool:
        self.events.append((action, status, user_id, details))
        return True


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def users() -> InMemoryUserDirectory:
    directory = InMemoryUserDirectory()
    directory.create("client@example.com", PASSWORD, verified=True)
    directory.create("admin@example.com", PASSWORD, role="admin", verified=True)
    directory.create("pending@example.com", PASSWORD, verified=False)
    return directory


@pytest.fixture()
def tokens(users, clock) -> TokenService:
    settings = TokenSettings(
        access_secret="unit-access-secret-0123456789abcdef",
        refresh_secret="unit-refresh-secret-0123456789abcdef",
    )
    store = InMemoryTokenStore(clock=clock)
    return TokenService(
        access_signer=HS256TokenSigner(
            secret=settings.access_secret,
            issuer=settings.issuer,
            audience=settings.access_audience,
            clock=clock,
        ),
        refresh_signer=HS256TokenSigner(
            secret=settings.refresh_secret,
            issuer=settings.issuer,
            audience=settings.refresh_audience,
            clock=clock,
        ),
        token_store=store,
        blacklist=InMemoryTokenBlacklist(store, clock=clock),
        users=users,
        settings=settings,
        clock=clock,
    )


@pytest.fixture()
def audit() -> RecordingAudit:
    return RecordingAudit()


@pytest.fixture()
def service(tokens, users, clock, audit) -> AuthService:
    limiter = RateLimiter(
        store=InMemoryRateLimitStore(),
        settings=RateLimitSettings(max_attempts=3, lockout=timedelta(minutes=30)),
        clock=clock,
    )
    return AuthService(
        tokens=tokens,
        users=users,
        limiter=limiter,
        audit=audit,
        ctx=ServiceContext(ip_address=IP, user_agent="pytest"),
    )


# -------------------------------- Login ----------------------------------- #
def test_login_issues_a_valid_pair(service, tokens, audit):
    out = service.login(LoginIn(email="Client@Example.com", password=PASSWORD))

    assert out.user.email == "client@example.com"
    assert out.user.role == "client"
    claims = tokens.validate_access(out.tokens.access_token).unwrap()
    assert claims.user_id == out.user.id
    assert audit.events[-1][:3] == ("login", "success", out.user.id)


@pytest.mark.parametrize(
    "email,password",
    [
        ("client@example.com", "wrong"),
        ("nobody@example.com", PASSWORD),
        ("pending@example.com", PASSWORD),
    ],
)
def test_login_failures_are_indistinguishable(service, email, password):
    with pytest.raises(InvalidCredentials) as exc_info:
        service.login(LoginIn(email=email, password=password))

    assert str(exc_info.value) == "Invalid credentials"


def test_admin_login_refuses_clients_generically(service):
    with pytest.raises(InvalidCredentials):
        service.login(LoginIn(email="client@example.com", password=PASSWORD), require_admin=True)

    out = service.login(LoginIn(email="admin@example.com", password=PASSWORD), require_admin=True)
    assert out.user.role == "admin"


def test_repeated_failures_lock_the_address(service, audit):
    for _ in range(3):
        with pytest.raises(InvalidCredentials):
            service.login(LoginIn(email="client@example.com", password="wrong"))

    with pytest.raises(AccountLocked) as exc_info:
        service.login(LoginIn(email="client@example.com", password=PASSWORD))

    assert exc_info.value.retry_after == 1800
    assert audit.events[-1][3] == {"reason": "locked_out"}


def test_lockout_lifts_after_the_window(service, clock):
    for _ in range(3):
        with pytest.raises(InvalidCredentials):
            service.login(LoginIn(email="client@example.com", password="wrong"))

    clock.advance(minutes=30)

    assert service.login(LoginIn(email="client@example.com", password=PASSWORD))


def test_success_resets_the_counter(service):
    for _ in range(2):
        with pytest.raises(InvalidCredentials):
            service.login(LoginIn(email="client@example.com", password="wrong"))

    service.login(LoginIn(email="client@example.com", password=PASSWORD))

    assert service.limiter.status(IP).remaining_attempts == 3


def test_admin_and_client_lockouts_are_separate(service):
    for _ in range(3):
        with pytest.raises(InvalidCredentials):
            service.login(LoginIn(email="admin@example.com", password="x"), require_admin=True)

    assert service.login(LoginIn(email="client@example.com", password=PASSWORD))


# --------------------------- Refresh / logout ----------------------------- #
def test_refresh_rotates_and_rejects_replay(service, audit):
    out = service.login(LoginIn(email="client@example.com", password=PASSWORD))

    new_pair = service.refresh(out.tokens.refresh_token)
    assert new_pair.access_token != out.tokens.access_token

    with pytest.raises(TokenRejected) as exc_info:
        service.refresh(out.tokens.refresh_token)
    assert exc_info.value.kind is TokenErrorKind.REVOKED
    assert audit.events[-1][:2] == ("refresh", "failure")


def test_logout_single_session(service, tokens):
    out = service.login(LoginIn(email="client@example.com", password=PASSWORD))
    claims = tokens.validate_access(out.tokens.access_token).unwrap()

    dto = LogoutIn(
        access_token=out.tokens.access_token, refresh_token=out.tokens.refresh_token
    )

    result = service.logout(claims, dto)

    assert result.all_sessions is False
    assert result.revoked == 2
    assert tokens.validate_access(out.tokens.access_token).error is TokenErrorKind.REVOKED


def test_logout_all_sessions_bumps_version(service, tokens, users):
    out = service.login(LoginIn(email="client@example.com", password=PASSWORD))
    claims = tokens.validate_access(out.tokens.access_token).unwrap()

    result = service.logout(
        claims, LogoutIn(access_token=out.tokens.access_token, all_sessions=True)
    )

    assert result.all_sessions is True
    assert users.get_token_version(claims.user_id) == 1
    assert tokens.validate_access(out.tokens.access_token).error is TokenErrorKind.VERSION_STALE


# ---------------------------- Password change ----------------------------- #
NEW_PASSWORD = "n3w-Passw0rd!"


def test_change_password_kills_old_tokens_and_issues_a_new_pair(service, tokens, users, audit):
    old = service.login(LoginIn(email="client@example.com", password=PASSWORD))
    claims = tokens.validate_access(old.tokens.access_token).unwrap()

    out = service.change_password(
        PasswordChangeIn(
            user_id=claims.user_id, current_password=PASSWORD, new_password=NEW_PASSWORD
        )
    )

    assert users.get_token_version(claims.user_id) == 1
    assert out.invalidation.blacklisted == 2
    assert tokens.blacklist.get(claims.jti).reason == "password_change"
    assert tokens.validate_access(old.tokens.access_token).error is TokenErrorKind.VERSION_STALE
    assert tokens.rotate(old.tokens.refresh_token).error is TokenErrorKind.VERSION_STALE

    fresh = tokens.validate_access(out.tokens.access_token).unwrap()
    assert fresh.token_version == 1
    assert tokens.rotate(out.tokens.refresh_token).ok
    assert audit.events[-1][:3] == ("password_change", "success", claims.user_id)


def test_change_password_switches_the_login_password(service, users):
    user = users.get_by_email("client@example.com")

    service.change_password(
        PasswordChangeIn(user_id=user.id, current_password=PASSWORD, new_password=NEW_PASSWORD)
    )

    with pytest.raises(InvalidCredentials):
        service.login(LoginIn(email="client@example.com", password=PASSWORD))
    assert service.login(LoginIn(email="client@example.com", password=NEW_PASSWORD))


def test_change_password_requires_the_current_password(service, users, audit):
    user = users.get_by_email("client@example.com")

    with pytest.raises(InvalidCredentials, match="Current password is incorrect"):
        service.change_password(
            PasswordChangeIn(user_id=user.id, current_password="wrong", new_password=NEW_PASSWORD)
        )

    assert users.get_token_version(user.id) == 0
    assert audit.events[-1][:2] == ("password_change", "failure")


def test_change_password_rejects_reusing_the_same_password(service, users):
    user = users.get_by_email("client@example.com")

    with pytest.raises(ServiceError, match="must differ"):
        service.change_password(
            PasswordChangeIn(user_id=user.id, current_password=PASSWORD, new_password=PASSWORD)
        )


def test_change_password_for_a_vanished_user(service):
    with pytest.raises(NotFoundError):
        service.change_password(
            PasswordChangeIn(user_id=999, current_password=PASSWORD, new_password=NEW_PASSWORD)
        )
