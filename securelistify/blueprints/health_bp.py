"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — 200 once the app is serving
    GET /api/v1/health/live   — database round-trip check
"""

import logging
import time

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from securelistify.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
    except SQLAlchemyError as exc:
        logger.error("Health check: database failed: %s", exc)
        return jsonify({"status": "error", "checks": {"database": {"status": "error", "detail": str(exc)}}}), 503
    return jsonify({"status": "ok", "checks": {"database": {"status": "ok", "latency_ms": round(db_ms, 1)}}}), 200
