# Overview: Request decorators for API routes: bearer authentication and the permission gate.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, permission_service


def require_auth(f):
    """
    Require a valid bearer session.

    MULTI-TENANT: Sets g.principal (principal_id, tenant_id, role) and
    g.tenant_id. A principal without a tenant is let through on purpose: the
    permission gate answers NO_TENANT for it, distinct from a bad token.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "UNAUTHENTICATED", "message": "Authentication required", "details": {}}), 401

        token = auth_header.split(" ", 1)[1].strip()

        principal = session_service.validate_session(token)
        if not principal:
            return jsonify({"error": "UNAUTHENTICATED", "message": "Invalid or expired token", "details": {}}), 401

        g.principal = principal
        g.tenant_id = principal.tenant_id

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Run the permission gate before the route body.

    Services check again on their own; this keeps payload parsing from
    running (and answering 400) for callers who may not act at all.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = getattr(g, "principal", None)
            result = permission_service.check(principal, permission_code, resource=request.path)
            if not result.ok:
                return jsonify(result.error.to_dict()), result.error.http_status

            return f(*args, **kwargs)

        return decorated_function
    return decorator
