# tests/unit/services/test_token_service.py
from __future__ import annotations

import threading
from datetime import timedelta

import pytest
from authcore.infra.jwt import HS256TokenSigner
from authcore.services._shared.errors import (
    ConfigError,
    IssuanceError,
    NotFoundError,
    StoreError,
    TokenRejected,
)
from authcore.services._shared.ports import (
    InMemoryTokenBlacklist,
    InMemoryTokenStore,
    InMemoryUserDirectory,
    UserRecord,
    hash_token,
)
from authcore.services._shared.results import TokenErrorKind
from authcore.services.tokens import TokenService, TokenSettings
from tests.helpers.doubles import BrokenBlacklist, BrokenTokenStore

ACCESS_SECRET = "unit-access-secret-0123456789abcdef"
REFRESH_SECRET = "unit-refresh-secret-0123456789abcdef"

USER_42 = UserRecord(id=42, email="client42@example.com", role="client", token_version=0)
ADMIN = UserRecord(id=7, email="admin@example.com", role="admin", token_version=3)


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def users() -> InMemoryUserDirectory:
    return InMemoryUserDirectory([USER_42, ADMIN])


@pytest.fixture()
def token_store(clock) -> InMemoryTokenStore:
    return InMemoryTokenStore(clock=clock)


@pytest.fixture()
def blacklist(token_store, clock) -> InMemoryTokenBlacklist:
    return InMemoryTokenBlacklist(token_store, clock=clock)


@pytest.fixture()
def make_service(clock, users, token_store, blacklist):
    """
    Build a TokenService wired to in-memory doubles.

    Keyword overrides replace collaborators or settings fields.
    """

    def _make(**overrides) -> TokenService:
        settings = TokenSettings(
            access_secret=ACCESS_SECRET,
            refresh_secret=REFRESH_SECRET,
            strict_store=overrides.pop("strict_store", False),
            revoke_all_on_reuse=overrides.pop("revoke_all_on_reuse", False),
        )
        deps = {
            "access_signer": HS256TokenSigner(
                secret=settings.access_secret,
                issuer=settings.issuer,
                audience=settings.access_audience,
                clock=clock,
            ),
            "refresh_signer": HS256TokenSigner(
                secret=settings.refresh_secret,
                issuer=settings.issuer,
                audience=settings.refresh_audience,
                clock=clock,
            ),
            "token_store": token_store,
            "blacklist": blacklist,
            "users": users,
            "settings": settings,
            "clock": clock,
        }
        deps.update(overrides)
        return TokenService(**deps)

    return _make


@pytest.fixture()
def service(make_service) -> TokenService:
    return make_service()


# ------------------------------ Issuance ---------------------------------- #
def test_issue_then_validate_returns_matching_claims(service):
    for user in (USER_42, ADMIN):
        pair = service.issue_pair(user)

        claims = service.validate_access(pair.access_token).unwrap()

        assert claims.user_id == user.id
        assert claims.role == user.role
        assert claims.token_version == user.token_version
        assert claims.email == user.email


def test_issue_pair_sets_ttls_from_settings(service, clock):
    pair = service.issue_pair(USER_42)

    assert pair.access_expires_at == clock.now() + timedelta(minutes=30)
    assert pair.refresh_expires_at == clock.now() + timedelta(days=7)
    assert pair.token_type == "Bearer"


def test_issue_pair_records_hashes_and_jtis(service, token_store):
    pair = service.issue_pair(USER_42)

    view = token_store.get(42)
    assert view is not None
    assert view.access_jti and view.refresh_jti
    assert view.access_jti != view.refresh_jti
    assert token_store.is_active(hash_token(pair.access_token))
    assert token_store.is_active(hash_token(pair.refresh_token))


def test_each_issuance_gets_fresh_jtis(service):
    first = service.validate_access(service.issue_pair(USER_42).access_token).unwrap()
    second = service.validate_access(service.issue_pair(USER_42).access_token).unwrap()

    assert first.jti != second.jti


def test_issue_pair_requires_user_id(service):
    with pytest.raises(IssuanceError):
        service.issue_pair(UserRecord(id=None, email="x@example.com", role="client"))


def test_issue_pair_without_secret_is_config_error(make_service, clock):
    unset = HS256TokenSigner(secret="", issuer="authcore", audience="authcore-app", clock=clock)
    service = make_service(access_signer=unset)

    with pytest.raises(ConfigError):
        service.issue_pair(USER_42)


def test_issue_pair_store_failure_is_fatal(make_service, clock):
    service = make_service(token_store=BrokenTokenStore(clock=clock))

    with pytest.raises(StoreError):
        service.issue_pair(USER_42)


# ------------------------------ Validation -------------------------------- #
def test_access_token_expires_after_ttl(service, clock):
    pair = service.issue_pair(USER_42)

    clock.advance(minutes=30)

    assert service.validate_access(pair.access_token).error is TokenErrorKind.EXPIRED


def test_validate_access_rejects_refresh_token(service):
    pair = service.issue_pair(USER_42)

    # Signed with the refresh secret: fails at the signature check
    result = service.validate_access(pair.refresh_token)

    assert result.error is TokenErrorKind.INVALID_SIGNATURE


def test_validate_access_rejects_wrong_type_claim(make_service, clock):
    shared = HS256TokenSigner(
        secret=ACCESS_SECRET, issuer="authcore", audience="authcore-app", clock=clock
    )
    service = make_service(access_signer=shared, refresh_signer=shared)
    pair = service.issue_pair(USER_42)

    assert service.validate_access(pair.refresh_token).error is TokenErrorKind.WRONG_TYPE


def test_validate_access_rejects_mistyped_subject(service, clock):
    now = int(clock.now().timestamp())
    token = service.access_signer.sign(
        {"sub": "not-a-number", "jti": "j1", "role": "client", "iat": now, "exp": now + 60}
    )

    assert service.validate_access(token).error is TokenErrorKind.INVALID_CLAIMS


def test_validate_access_rejects_blacklisted_jti(service, blacklist):
    pair = service.issue_pair(USER_42)
    claims = service.validate_access(pair.access_token).unwrap()

    blacklist.add(
        jti=claims.jti, user_id=42, original_exp=claims.expires_at, reason="security"
    )

    assert service.validate_access(pair.access_token).error is TokenErrorKind.REVOKED


def test_validate_access_rejects_deleted_user(service, users):
    pair = service.issue_pair(USER_42)
    users._users.pop(42)

    assert service.validate_access(pair.access_token).error is TokenErrorKind.REVOKED


def test_version_bump_makes_live_token_stale(service, users):
    pair = service.issue_pair(USER_42)
    assert service.validate_access(pair.access_token).ok

    assert users.bump_token_version(42) == 1

    result = service.validate_access(pair.access_token)
    assert result.error is TokenErrorKind.VERSION_STALE


def test_validate_access_does_not_mutate_state(service, token_store, blacklist):
    pair = service.issue_pair(USER_42)
    before_store = dict(token_store._rows)
    before_blacklist = dict(blacklist._entries)

    for _ in range(3):
        service.validate_access(pair.access_token)

    assert token_store._rows == before_store
    assert blacklist._entries == before_blacklist


def test_strict_store_requires_active_row(make_service, token_store):
    service = make_service(strict_store=True)
    pair = service.issue_pair(USER_42)
    assert service.validate_access(pair.access_token).ok

    token_store.revoke(hash_token(pair.access_token), "logout")

    assert service.validate_access(pair.access_token).error is TokenErrorKind.REVOKED


def test_lenient_store_ignores_missing_row(service, token_store):
    pair = service.issue_pair(USER_42)
    token_store._rows.clear()

    assert service.validate_access(pair.access_token).ok


def test_validation_fails_closed_on_store_error(make_service, token_store, clock):
    healthy = make_service()
    pair = healthy.issue_pair(USER_42)
    broken = make_service(blacklist=BrokenBlacklist(token_store, clock=clock))

    result = broken.validate_access(pair.access_token)

    assert result.error is TokenErrorKind.STORE_ERROR
    with pytest.raises(TokenRejected) as exc_info:
        result.unwrap()
    assert exc_info.value.kind is TokenErrorKind.STORE_ERROR


# ------------------------------ Rotation ---------------------------------- #
def test_rotate_twice_second_call_is_revoked(service):
    pair = service.issue_pair(USER_42)

    first = service.rotate(pair.refresh_token)
    second = service.rotate(pair.refresh_token)

    assert first.ok
    assert first.unwrap().refresh_token != pair.refresh_token
    assert second.error is TokenErrorKind.REVOKED


def test_rotated_pair_is_usable(service):
    pair = service.issue_pair(USER_42)

    new_pair = service.rotate(pair.refresh_token).unwrap()

    assert service.validate_access(new_pair.access_token).ok
    assert service.rotate(new_pair.refresh_token).ok


def test_rotate_blacklists_old_refresh_jti(service, blacklist):
    pair = service.issue_pair(USER_42)
    refresh_jti = service.refresh_signer.verify(pair.refresh_token).unwrap()["jti"]

    service.rotate(pair.refresh_token)

    entry = blacklist.get(refresh_jti)
    assert entry is not None
    assert entry.reason == "token_rotation"


def test_rotate_rejects_access_token(service):
    pair = service.issue_pair(USER_42)

    assert service.rotate(pair.access_token).error is TokenErrorKind.INVALID_SIGNATURE


def test_rotate_rejects_expired_refresh_token(service, clock):
    pair = service.issue_pair(USER_42)
    clock.advance(days=7, seconds=1)

    assert service.rotate(pair.refresh_token).error is TokenErrorKind.EXPIRED


def test_rotate_rejects_stale_version(service, users):
    pair = service.issue_pair(USER_42)
    users.bump_token_version(42)

    assert service.rotate(pair.refresh_token).error is TokenErrorKind.VERSION_STALE


def test_concurrent_rotation_has_single_winner(service):
    pair = service.issue_pair(USER_42)
    barrier = threading.Barrier(8)
    outcomes = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        result = service.rotate(pair.refresh_token)
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(1 for r in outcomes if r.ok) == 1
    assert all(r.error is TokenErrorKind.REVOKED for r in outcomes if not r.ok)


def test_reuse_leaves_sessions_alone_by_default(service):
    pair = service.issue_pair(USER_42)
    new_pair = service.rotate(pair.refresh_token).unwrap()

    service.rotate(pair.refresh_token)

    assert service.validate_access(new_pair.access_token).ok


def test_reuse_can_invalidate_every_session(make_service, users, caplog):
    service = make_service(revoke_all_on_reuse=True)
    pair = service.issue_pair(USER_42)
    new_pair = service.rotate(pair.refresh_token).unwrap()

    replay = service.rotate(pair.refresh_token)

    assert replay.error is TokenErrorKind.REVOKED
    assert users.get_token_version(42) == 1
    assert service.validate_access(new_pair.access_token).error is TokenErrorKind.VERSION_STALE
    assert any(r.getMessage() == "token.refresh_reuse" for r in caplog.records)


# ------------------------------ Revocation -------------------------------- #
def test_invalidate_all_makes_live_tokens_stale(service):
    pair = service.issue_pair(USER_42)

    out = service.invalidate_all(42)

    assert out.token_version == 1
    assert out.revoked_rows == 1
    assert out.blacklisted == 2
    assert service.validate_access(pair.access_token).error is TokenErrorKind.VERSION_STALE
    assert service.rotate(pair.refresh_token).error is TokenErrorKind.VERSION_STALE


def test_invalidate_all_version_alone_rejects_untracked_tokens(service, token_store):
    pair = service.issue_pair(USER_42)
    token_store._rows.clear()

    out = service.invalidate_all(42)

    assert out.blacklisted == 0
    assert service.validate_access(pair.access_token).error is TokenErrorKind.VERSION_STALE


def test_invalidate_all_is_retry_safe(service):
    service.issue_pair(USER_42)

    service.invalidate_all(42)
    again = service.invalidate_all(42)

    assert again.token_version == 2
    assert again.blacklisted == 0
    assert again.revoked_rows == 0


def test_invalidate_all_unknown_user(service):
    with pytest.raises(NotFoundError):
        service.invalidate_all(999)


def test_revoke_pair_blacklists_both_tokens(service, token_store):
    pair = service.issue_pair(USER_42)

    created = service.revoke_pair(pair.access_token, pair.refresh_token)

    assert created == 2
    assert service.validate_access(pair.access_token).error is TokenErrorKind.REVOKED
    assert service.rotate(pair.refresh_token).error is TokenErrorKind.REVOKED
    assert token_store.get(42).revoked


def test_revoke_pair_accepts_expired_and_ignores_forged(service, clock):
    pair = service.issue_pair(USER_42)
    clock.advance(hours=1)

    assert service.revoke_pair(pair.access_token, "not.a.token") == 1
    assert service.revoke_pair(pair.access_token) == 0


def test_touch_is_best_effort(make_service, service, token_store, clock):
    pair = service.issue_pair(USER_42)
    assert service.touch(pair.access_token) is True

    broken = make_service(token_store=BrokenTokenStore(clock=clock))
    assert broken.touch(pair.access_token) is False
