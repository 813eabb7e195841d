"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, ``default`` when unset."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_ACCESS_SECRET: str
        HMAC key for access tokens. An empty value makes issuance fail with
        ``ConfigError`` instead of signing with a guessable key.
    JWT_REFRESH_SECRET: str
        HMAC key for refresh tokens; falls back to ``JWT_ACCESS_SECRET``.
    JWT_ISSUER / JWT_ACCESS_AUDIENCE / JWT_REFRESH_AUDIENCE: str
        ``iss`` and ``aud`` claims written and enforced by the signers.
    ACCESS_TOKEN_TTL_MINUTES / REFRESH_TOKEN_TTL_DAYS: int
        Token lifetimes.
    STRICT_TOKEN_STORE: bool
        Require an active token-store row on every access validation.
    REVOKE_ALL_ON_REFRESH_REUSE: bool
        Treat a replayed refresh token as theft and invalidate every session.
    INVITATION_TTL_DAYS / INVITATION_TOKEN_BYTES: int
        Invitation defaults (token length is ``2 * bytes`` hex chars).
    MAX_LOGIN_ATTEMPTS / LOCKOUT_MINUTES: int
        Per-IP lockout policy for login-style actions.
    BLACKLIST_RETENTION_DAYS: int
        Days past ``original_exp`` a blacklist entry is kept.
    REDIS_URL: str | None
        When set, rate-limit counters live in Redis instead of SQL.
    AUTO_REPAIR_SCHEMA: bool
        Run :class:`~authcore.infra.sql.schema_repair.SchemaRepair` at start-up.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "authcore")
    JWT_ACCESS_AUDIENCE = os.getenv("JWT_ACCESS_AUDIENCE", "authcore-app")
    JWT_REFRESH_AUDIENCE = os.getenv("JWT_REFRESH_AUDIENCE", "authcore-refresh")
    ACCESS_TOKEN_TTL_MINUTES = env_int("ACCESS_TOKEN_TTL_MINUTES", 30)
    REFRESH_TOKEN_TTL_DAYS = env_int("REFRESH_TOKEN_TTL_DAYS", 7)
    STRICT_TOKEN_STORE = env_bool("STRICT_TOKEN_STORE", False)
    REVOKE_ALL_ON_REFRESH_REUSE = env_bool("REVOKE_ALL_ON_REFRESH_REUSE", False)

    # Refresh cookie
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh_token")
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", True)
    REFRESH_COOKIE_SAMESITE = os.getenv("REFRESH_COOKIE_SAMESITE", "Strict")
    REFRESH_COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/api/v1/auth")

    # Invitations
    INVITATION_TTL_DAYS = env_int("INVITATION_TTL_DAYS", 7)
    INVITATION_TOKEN_BYTES = env_int("INVITATION_TOKEN_BYTES", 32)

    # Lockout & maintenance
    MAX_LOGIN_ATTEMPTS = env_int("MAX_LOGIN_ATTEMPTS", 5)
    LOCKOUT_MINUTES = env_int("LOCKOUT_MINUTES", 30)
    BLACKLIST_RETENTION_DAYS = env_int("BLACKLIST_RETENTION_DAYS", 30)
    AUTO_REPAIR_SCHEMA = env_bool("AUTO_REPAIR_SCHEMA", False)

    # Coarse per-route throttling (Flask-Limiter)
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "20 per minute")

    # DB & cache
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL") or None

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode, relaxes the secure-cookie flag for plain HTTP and
    ships throwaway signing keys so the app boots without a ``.env``.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "dev-access-secret")
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Disables Flask-Limiter so lockout tests exercise the domain limiter only.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = True
    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    RATELIMIT_ENABLED = False
    REDIS_URL = None
    REFRESH_COOKIE_SECURE = False
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
