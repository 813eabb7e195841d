"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from authcore.api.deps import json_response, timing
from authcore.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and (when configured) Redis health."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    finally:
        db.session.rollback()

    payload = {
        "status": "ok" if db_status == "ok" else "degraded",
        "db": db_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    client = current_app.extensions.get("redis_client")
    if client is not None:
        from redis.exceptions import RedisError  # type: ignore[import-untyped]

        try:
            client.ping()
            payload["redis"] = "ok"
        except RedisError:
            current_app.logger.exception("healthcheck.redis_error")
            payload["redis"] = "fail"
    return json_response(payload, status=200 if db_status == "ok" else 503)
