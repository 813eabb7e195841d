"""Authentication endpoints: login, refresh rotation, logout, password change and whoami."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, g, request

from authcore.api.deps import (
    current_claims,
    json_response,
    require_auth,
    service_context,
    timing,
)
from authcore.core.extensions import limiter
from authcore.schemas import (
    LoginResponseSchema,
    LoginSchema,
    LogoutSchema,
    PasswordChangeSchema,
    RefreshSchema,
    TokenResponseSchema,
    WhoAmISchema,
)
from authcore.services._shared.errors import TokenRejected
from authcore.services._shared.results import TokenErrorKind
from authcore.services.auth.dto import LoginIn, LogoutIn, PasswordChangeIn
from authcore.services.registry import get_services
from authcore.services.tokens.dto import TokenPairOut

bp = Blueprint("auth", __name__, url_prefix="/auth")

login_schema = LoginSchema()
login_response_schema = LoginResponseSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
password_change_schema = PasswordChangeSchema()
token_schema = TokenResponseSchema()
whoami_schema = WhoAmISchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "20 per minute"))


# ------------------------------ Cookie helpers ----------------------------- #


def _set_refresh_cookie(response: Response, pair: TokenPairOut) -> None:
    cfg = current_app.config
    response.set_cookie(
        cfg.get("REFRESH_COOKIE_NAME", "refresh_token"),
        pair.refresh_token,
        expires=pair.refresh_expires_at,
        httponly=True,
        secure=bool(cfg.get("REFRESH_COOKIE_SECURE", True)),
        samesite=cfg.get("REFRESH_COOKIE_SAMESITE", "Strict"),
        path=cfg.get("REFRESH_COOKIE_PATH", "/api/v1/auth"),
    )


def _clear_refresh_cookie(response: Response) -> None:
    cfg = current_app.config
    response.delete_cookie(
        cfg.get("REFRESH_COOKIE_NAME", "refresh_token"),
        path=cfg.get("REFRESH_COOKIE_PATH", "/api/v1/auth"),
        httponly=True,
        secure=bool(cfg.get("REFRESH_COOKIE_SECURE", True)),
        samesite=cfg.get("REFRESH_COOKIE_SAMESITE", "Strict"),
    )


def _refresh_token_from_request(body_token: str | None) -> str | None:
    cookie = request.cookies.get(current_app.config.get("REFRESH_COOKIE_NAME", "refresh_token"))
    return cookie or body_token


# ------------------------------ Login -------------------------------------- #


def _login(require_admin: bool) -> Response:
    data = login_schema.load(request.get_json(silent=True) or {})
    auth = get_services().auth(service_context())
    dto = LoginIn(email=data["email"], password=data["password"])
    out = auth.login(dto, require_admin=require_admin)
    response = json_response({"data": login_response_schema.dump(out)})
    _set_refresh_cookie(response, out.tokens)
    return response


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials; access token in the body, refresh token in a cookie."""

    return _login(require_admin=False)


@bp.post("/admin/login")
@limiter.limit(_login_rate_limit)
@timing
def admin_login():
    """Same as ``/login`` but only for admins (non-admins get the generic 401)."""

    return _login(require_admin=True)


# ------------------------------ Refresh / logout --------------------------- #


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh token (cookie first, JSON body as fallback)."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    token = _refresh_token_from_request(data.get("refresh_token"))
    if not token:
        raise TokenRejected(kind=TokenErrorKind.MALFORMED, detail="no refresh token")
    pair = get_services().auth(service_context()).refresh(token)
    response = json_response({"data": token_schema.dump(pair)})
    _set_refresh_cookie(response, pair)
    return response


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the current pair, or every session with ``all_sessions=true``."""

    data = logout_schema.load(request.get_json(silent=True) or {})
    dto = LogoutIn(
        access_token=g.access_token,
        refresh_token=_refresh_token_from_request(data.get("refresh_token")),
        all_sessions=data["all_sessions"],
    )
    out = get_services().auth(service_context()).logout(current_claims(), dto)
    response = json_response(
        {"data": {"all_sessions": out.all_sessions, "revoked": out.revoked}}
    )
    _clear_refresh_cookie(response)
    return response


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the claims of the presented access token."""

    get_services().tokens.touch(g.access_token)
    return json_response({"data": whoami_schema.dump(current_claims())})


@bp.post("/change-password")
@require_auth
@timing
def change_password():
    """Change the caller's password; every other session is logged out."""

    data = password_change_schema.load(request.get_json(silent=True) or {})
    dto = PasswordChangeIn(
        user_id=current_claims().user_id,
        current_password=data["current_password"],
        new_password=data["new_password"],
    )
    out = get_services().auth(service_context()).change_password(dto)
    response = json_response(
        {
            "data": {
                "tokens": token_schema.dump(out.tokens),
                "revoked": out.invalidation.blacklisted,
            }
        }
    )
    _set_refresh_cookie(response, out.tokens)
    return response
