"""CORS configuration for the API and the refresh-cookie flow."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS

# Headers browsers may read from cross-origin responses
EXPOSED_HEADERS = ["X-Request-ID", "Retry-After"]


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints based on application config.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted.

    Notes
    -----
    The refresh token travels in an HTTP-only cookie, so cross-origin
    ``/auth/refresh`` calls only work with an explicit origin list. A blank or
    ``"*"`` value allows any origin but disables credential support, which
    leaves refresh usable only through the JSON body fallback.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        expose_headers=EXPOSED_HEADERS,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
