"""HTTP tests for the ``/api/v1/auth`` endpoints."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from authcore.models.auth_log import AuthLog
from authcore.models.user import UserRole
from authcore.services._shared.ports import FrozenClock
from sqlalchemy import select
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.utils import bearer, login, problem_code, refresh_cookie

ME = "/api/v1/auth/me"
REFRESH = "/api/v1/auth/refresh"
LOGOUT = "/api/v1/auth/logout"
CHANGE_PASSWORD = "/api/v1/auth/change-password"


@pytest.fixture()
def clock():
    """Frozen at the real current time so cookie expiry is in the future."""
    return FrozenClock(datetime.now(UTC).replace(microsecond=0))


@pytest.fixture()
def user(session):
    return UserFactory(email="client@example.com")


@pytest.fixture()
def admin(session):
    return UserFactory(email="admin@example.com", role=UserRole.ADMIN)


def _access(response) -> str:
    return response.get_json()["data"]["tokens"]["access_token"]


# --------------------------------- Login ----------------------------------- #
def test_login_returns_access_token_and_refresh_cookie(client, user) -> None:
    resp = login(client, "Client@Example.com", DEFAULT_PASSWORD)

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["user"] == {"id": user.id, "email": "client@example.com", "role": "client"}
    assert data["tokens"]["token_type"] == "Bearer"
    assert data["tokens"]["access_token"]
    assert "refresh_token" not in data["tokens"]

    [cookie] = [h for h in resp.headers.getlist("Set-Cookie") if h.startswith("refresh_token=")]
    assert "HttpOnly" in cookie
    assert "Path=/api/v1/auth" in cookie
    assert "SameSite=Strict" in cookie


def test_login_failures_look_identical(client, user, session) -> None:
    UserFactory(email="pending@example.com", verified=False)

    responses = [
        login(client, "client@example.com", "wrong-password"),
        login(client, "nobody@example.com", DEFAULT_PASSWORD),
        login(client, "pending@example.com", DEFAULT_PASSWORD),
    ]

    assert {r.status_code for r in responses} == {401}
    assert {problem_code(r) for r in responses} == {"invalid_credentials"}
    assert len({r.get_json()["detail"] for r in responses}) == 1
    assert all(r.mimetype == "application/problem+json" for r in responses)


def test_login_payload_is_validated(client) -> None:
    resp = client.post("/api/v1/auth/login", json={"email": "not-an-email"})

    assert resp.status_code == 422
    assert problem_code(resp) == "validation_error"
    assert set(resp.get_json()["details"]["errors"]) == {"email", "password"}


def test_lockout_after_repeated_failures(client, user, clock) -> None:
    headers = {"X-Forwarded-For": "198.51.100.20"}

    def attempt(password: str):
        return client.post(
            "/api/v1/auth/login",
            json={"email": "client@example.com", "password": password},
            headers=headers,
        )

    failures = [attempt("wrong") for _ in range(5)]
    assert [r.status_code for r in failures] == [401] * 5

    locked = attempt(DEFAULT_PASSWORD)
    assert locked.status_code == 429
    assert problem_code(locked) == "too_many_requests"
    assert locked.headers["Retry-After"] == "1800"
    assert locked.get_json()["details"]["retry_after"] == 1800

    # Other addresses are unaffected
    assert login(client, "client@example.com", DEFAULT_PASSWORD).status_code == 200

    clock.advance(minutes=30, seconds=1)
    assert attempt(DEFAULT_PASSWORD).status_code == 200


def test_admin_login_requires_admin_role(client, user, admin) -> None:
    denied = login(client, "client@example.com", DEFAULT_PASSWORD, admin=True)
    allowed = login(client, "admin@example.com", DEFAULT_PASSWORD, admin=True)

    assert denied.status_code == 401
    assert problem_code(denied) == "invalid_credentials"
    assert allowed.status_code == 200
    assert allowed.get_json()["data"]["user"]["role"] == "admin"


def test_failed_and_successful_logins_are_audited(client, user, db) -> None:
    login(client, "client@example.com", "wrong")
    login(client, "client@example.com", DEFAULT_PASSWORD)

    rows = db.session.execute(select(AuthLog).order_by(AuthLog.id)).scalars().all()
    assert [(r.action, r.status) for r in rows] == [
        ("login", "failure"),
        ("login", "success"),
    ]
    assert rows[0].ip_address == "127.0.0.1"
    assert rows[1].user_id == user.id


# ---------------------------------- /me ------------------------------------ #
def test_me_returns_token_claims(client, user) -> None:
    token = _access(login(client, "client@example.com", DEFAULT_PASSWORD))

    resp = client.get(ME, headers=bearer(token))

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["id"] == user.id
    assert data["email"] == "client@example.com"
    assert data["role"] == "client"
    assert data["token_version"] == 0


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Basic abc"}, {"Authorization": "Bearer not.a.jwt"}],
)
def test_me_rejects_missing_or_garbage_tokens(client, headers) -> None:
    resp = client.get(ME, headers=headers)

    assert resp.status_code == 401
    assert problem_code(resp) == "invalid_token"


def test_expired_access_token_has_its_own_code(client, user, clock) -> None:
    token = _access(login(client, "client@example.com", DEFAULT_PASSWORD))

    clock.advance(minutes=31)
    resp = client.get(ME, headers=bearer(token))

    assert resp.status_code == 401
    assert problem_code(resp) == "token_expired"


# -------------------------------- Refresh ---------------------------------- #
def test_refresh_rotates_the_cookie(client, user, app) -> None:
    first = login(client, "client@example.com", DEFAULT_PASSWORD)
    old_refresh = refresh_cookie(first)

    rotated = client.post(REFRESH)

    assert rotated.status_code == 200
    new_refresh = refresh_cookie(rotated)
    assert new_refresh and new_refresh != old_refresh
    new_access = rotated.get_json()["data"]["access_token"]
    assert new_access != _access(first)
    assert client.get(ME, headers=bearer(new_access)).status_code == 200

    # The rotated-out refresh token is spent, even from another client
    replay = app.test_client().post(REFRESH, json={"refresh_token": old_refresh})
    assert replay.status_code == 401
    assert problem_code(replay) == "invalid_token"


def test_refresh_accepts_body_token(app, user) -> None:
    cookie_client = app.test_client()
    refresh = refresh_cookie(login(cookie_client, "client@example.com", DEFAULT_PASSWORD))

    resp = app.test_client().post(REFRESH, json={"refresh_token": refresh})

    assert resp.status_code == 200


def test_refresh_without_token(client) -> None:
    resp = client.post(REFRESH)

    assert resp.status_code == 401
    assert problem_code(resp) == "invalid_token"


def test_access_token_is_not_a_refresh_token(app, user) -> None:
    access = _access(login(app.test_client(), "client@example.com", DEFAULT_PASSWORD))

    resp = app.test_client().post(REFRESH, json={"refresh_token": access})

    assert resp.status_code == 401


# -------------------------------- Logout ----------------------------------- #
def test_logout_revokes_the_current_pair(client, user, app) -> None:
    resp = login(client, "client@example.com", DEFAULT_PASSWORD)
    access, refresh = _access(resp), refresh_cookie(resp)

    out = client.post(LOGOUT, headers=bearer(access))

    assert out.status_code == 200
    assert out.get_json()["data"] == {"all_sessions": False, "revoked": 2}
    assert refresh_cookie(out) is None
    assert client.get(ME, headers=bearer(access)).status_code == 401
    replay = app.test_client().post(REFRESH, json={"refresh_token": refresh})
    assert replay.status_code == 401


def test_logout_everywhere_invalidates_other_sessions(app, user) -> None:
    laptop, phone = app.test_client(), app.test_client()
    laptop_access = _access(login(laptop, "client@example.com", DEFAULT_PASSWORD))
    phone_access = _access(login(phone, "client@example.com", DEFAULT_PASSWORD))

    out = laptop.post(LOGOUT, headers=bearer(laptop_access), json={"all_sessions": True})

    assert out.status_code == 200
    assert out.get_json()["data"]["all_sessions"] is True
    for client, token in ((laptop, laptop_access), (phone, phone_access)):
        resp = client.get(ME, headers=bearer(token))
        assert resp.status_code == 401
        assert problem_code(resp) == "invalid_token"


def test_logout_requires_authentication(client) -> None:
    assert client.post(LOGOUT).status_code == 401


# ---------------------------- Password change ------------------------------ #
def test_change_password_logs_out_every_other_session(app, user) -> None:
    laptop, phone = app.test_client(), app.test_client()
    laptop_login = login(laptop, "client@example.com", DEFAULT_PASSWORD)
    phone_login = login(phone, "client@example.com", DEFAULT_PASSWORD)
    phone_access, phone_refresh = _access(phone_login), refresh_cookie(phone_login)

    resp = laptop.post(
        CHANGE_PASSWORD,
        headers=bearer(_access(laptop_login)),
        json={"current_password": DEFAULT_PASSWORD, "new_password": "An0ther-secret!"},
    )

    assert resp.status_code == 200
    new_access = resp.get_json()["data"]["tokens"]["access_token"]
    assert refresh_cookie(resp)
    assert laptop.get(ME, headers=bearer(new_access)).get_json()["data"]["token_version"] == 1

    stale = phone.get(ME, headers=bearer(phone_access))
    assert stale.status_code == 401
    assert problem_code(stale) == "invalid_token"
    replay = app.test_client().post(REFRESH, json={"refresh_token": phone_refresh})
    assert replay.status_code == 401

    assert login(app.test_client(), "client@example.com", DEFAULT_PASSWORD).status_code == 401
    assert login(app.test_client(), "client@example.com", "An0ther-secret!").status_code == 200


def test_change_password_checks_the_current_password(client, user) -> None:
    access = _access(login(client, "client@example.com", DEFAULT_PASSWORD))

    resp = client.post(
        CHANGE_PASSWORD,
        headers=bearer(access),
        json={"current_password": "not-it", "new_password": "An0ther-secret!"},
    )

    assert resp.status_code == 401
    assert problem_code(resp) == "invalid_credentials"
    assert client.get(ME, headers=bearer(access)).status_code == 200


@pytest.mark.parametrize(
    ("payload", "status"),
    [
        ({"current_password": DEFAULT_PASSWORD}, 422),
        ({"current_password": DEFAULT_PASSWORD, "new_password": "short"}, 422),
        ({"current_password": DEFAULT_PASSWORD, "new_password": DEFAULT_PASSWORD}, 400),
    ],
)
def test_change_password_payload_is_validated(client, user, payload, status) -> None:
    access = _access(login(client, "client@example.com", DEFAULT_PASSWORD))

    resp = client.post(CHANGE_PASSWORD, headers=bearer(access), json=payload)

    assert resp.status_code == status


def test_change_password_requires_authentication(client) -> None:
    resp = client.post(
        CHANGE_PASSWORD, json={"current_password": "x", "new_password": "An0ther-secret!"}
    )

    assert resp.status_code == 401
