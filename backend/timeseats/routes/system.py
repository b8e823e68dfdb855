# backend/timeseats/routes/system.py
"""
System health and version endpoints.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy import func, select

from ..extensions import db
from ..models import Order, Product, SalesSlot
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a few cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        product_count = db.session.scalar(select(func.count(Product.id)))
        slot_count = db.session.scalar(select(func.count(SalesSlot.id)))
        order_count = db.session.scalar(select(func.count(Order.id)))

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "sales_slots": slot_count,
                "orders": order_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: database reachable
    - 503: database unhealthy
    """
    start_time = time.time()
    database_health = check_database_health()

    if database_health["status"] == "unhealthy":
        overall_status = "unhealthy"
        http_status = 503
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
        }
    }, http_status


@system_bp.get("/info")
def info():
    """
    Non-sensitive deployment information plus the scheduling settings in effect.
    """
    env = "production" if not current_app.debug else "development"
    cfg = current_app.config

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
        "slot_alignment_minutes": cfg.get("SLOT_ALIGNMENT_MINUTES"),
        "next_slot_lookahead_minutes": cfg.get("NEXT_SLOT_LOOKAHEAD_MINUTES"),
        "deferred_payment_methods": sorted(cfg.get("TICKET_DEFERRED_PAYMENT_METHODS") or []),
    }
