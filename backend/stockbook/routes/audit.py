# Overview: Flask API route for reading the tenant audit log (owner only).

from flask import Blueprint, request, g

from ..decorators import require_auth, require_permission
from ..responses import respond
from ..services import audit_service


audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit-logs")


@audit_bp.get("")
@require_auth
@require_permission("view_audit_logs")
def list_audit_logs_route():
    limit = request.args.get("limit", default=100, type=int)
    entity = request.args.get("entity") or None
    result = audit_service.list_audit_logs(g.principal, limit=max(1, min(limit, 500)), entity=entity)
    return respond(result, key="audit_logs")
