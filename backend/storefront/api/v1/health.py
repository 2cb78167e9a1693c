"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from storefront.api.deps import json_response, timing
from storefront.core.extensions import db, get_redis

bp = Blueprint("health", __name__)


def _cache_status() -> str:
    if "redis_client" not in current_app.extensions:
        return "memory"
    try:
        get_redis().ping()
    except RedisError:
        current_app.logger.exception("healthcheck.cache_error")
        return "fail"
    return "ok"


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and revocation-store health."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    cache_status = _cache_status()
    overall = "ok" if db_status == "ok" and cache_status != "fail" else "degraded"
    version = current_app.config.get("APP_VERSION", "dev")
    payload = {"status": overall, "db": db_status, "cache": cache_status, "version": version}
    return json_response(payload, status=200 if overall == "ok" else 503)
