"""Tiny helpers shared across test modules."""

from __future__ import annotations

from typing import Any


def bearer(token: str) -> dict[str, str]:
    """Return an ``Authorization`` header for ``token``."""
    return {"Authorization": f"Bearer {token}"}


def login(client: Any, email: str, password: str, *, admin: bool = False) -> Any:
    """POST credentials to the (admin) login route and return the response."""
    path = "/api/v1/auth/admin/login" if admin else "/api/v1/auth/login"
    return client.post(path, json={"email": email, "password": password})


def problem_code(response: Any) -> str | None:
    """Machine-readable ``code`` of an RFC 7807 error body."""
    return (response.get_json() or {}).get("code")


def refresh_cookie(response: Any, name: str = "refresh_token") -> str | None:
    """Value of the refresh cookie set by ``response``, if any."""
    for header in response.headers.getlist("Set-Cookie"):
        if header.startswith(f"{name}="):
            return header.split(";", 1)[0].split("=", 1)[1] or None
    return None
