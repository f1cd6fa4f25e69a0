# backend/stockbook/routes/system.py
"""
System health endpoint.

Reports database reachability and whether the permission table loaded, so a
deploy can be checked without a session token.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import select, func

from ..extensions import db
from ..models import Tenant, SessionToken
from ..permissions import ROLE_PERMISSIONS
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        tenant_count = db.session.execute(select(func.count(Tenant.id))).scalar_one()
        active_sessions = db.session.execute(
            select(func.count(SessionToken.id)).where(
                SessionToken.is_revoked.is_(False),
                SessionToken.expires_at > utcnow(),
            )
        ).scalar_one()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"tenants": tenant_count, "active_sessions": active_sessions},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database check failed
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"
    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database_health,
            "permissions": {"status": "healthy", "roles": len(ROLE_PERMISSIONS)},
        },
    }
    return response, 200 if healthy else 503
