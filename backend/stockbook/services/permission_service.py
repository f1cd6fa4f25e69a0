# Overview: Authorization gate; every ledger operation passes through check() before it reads or writes.

"""
Permission Gate

WHY: One decision point for "may this principal do this action in this
tenant". The answer is a Result, not an exception:

- no principal               -> UNAUTHENTICATED
- principal without a tenant -> NO_TENANT
- role lacks the action      -> FORBIDDEN (details carry the required action
                                and the roles that hold it)

OWNER_ONLY_ACTIONS (void_sales, void_purchases, view_audit_logs) are decided by role
identity: only OWNER passes, whatever the role table lists.

Denials are recorded as SecurityEvent rows, best effort. A failed write is
logged and never changes the answer. Grants are not logged.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import SecurityEvent
from ..permissions import (
    OWNER_ONLY_ACTIONS,
    Role,
    get_permission_definition,
    get_permissions_for_role,
    validate_permission_code,
)
from ..results import ErrorKind, Err, Ok, Result
from stockbook.time_utils import utcnow

logger = logging.getLogger(__name__)


def log_security_event(
    principal_id: str | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    tenant_id: int | None = None,
    role: str | None = None,
) -> SecurityEvent | None:
    """
    Append a security event with tenant context.

    event_type examples:
    - PERMISSION_DENIED
    - TENANT_CONTEXT_MISSING
    """
    event = SecurityEvent(
        principal_id=principal_id,
        tenant_id=tenant_id,
        role=role,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        occurred_at=utcnow(),
    )
    try:
        db.session.add(event)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.warning("Failed to record security event %s for %s", event_type, principal_id, exc_info=True)
        return None
    return event


def roles_allowed(action: str) -> list[str]:
    definition = get_permission_definition(action)
    return definition["roles"] if definition else []


def has_permission(role: Role, action: str) -> bool:
    """Pure table lookup with the owner-only override applied."""
    if action in OWNER_ONLY_ACTIONS:
        return role is Role.OWNER
    return action in get_permissions_for_role(role)


def check(principal, action: str, *, resource: str | None = None) -> Result:
    """
    Decide whether `principal` may perform `action`.

    Raises ValueError for an action outside the permission catalogue; that is
    a programming error, not a denial.
    """
    if not validate_permission_code(action):
        raise ValueError(f"Unknown permission: {action}")

    if principal is None:
        return Err(ErrorKind.UNAUTHENTICATED, "Authentication required", required_permission=action)

    if principal.tenant_id is None:
        log_security_event(
            principal_id=principal.principal_id,
            event_type="TENANT_CONTEXT_MISSING",
            success=False,
            resource=resource,
            action=action,
            reason="Principal is not bound to a tenant",
            role=principal.role.value,
        )
        return Err(
            ErrorKind.NO_TENANT,
            "No tenant is bound to this session",
            required_permission=action,
        )

    if has_permission(principal.role, action):
        return Ok()

    allowed = roles_allowed(action)
    log_security_event(
        principal_id=principal.principal_id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=action,
        reason=f"Role {principal.role.value} lacks {action}",
        tenant_id=principal.tenant_id,
        role=principal.role.value,
    )
    return Err(
        ErrorKind.FORBIDDEN,
        f"Permission denied: {action}",
        required_permission=action,
        role=principal.role.value,
        allowed_roles=allowed,
    )
