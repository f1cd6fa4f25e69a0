# Overview: Post-commit audit intents and the sinks that persist them.

"""
Audit Trail

WHY: The ledger decides what happened; the audit trail only records it. The
engine emits an AuditIntent after its transaction has committed, and each
registered sink handles it on its own. A sink that raises is logged and
skipped, so a broken audit store can never undo or fail a committed sale.

Sinks live on app.extensions["stockbook.audit_sinks"]. The default
DatabaseAuditSink writes an AuditLog row in a transaction of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from flask import current_app
from sqlalchemy import select

from ..extensions import db
from ..models import AuditLog
from ..results import Ok, Result
from . import permission_service

logger = logging.getLogger(__name__)

EXTENSION_KEY = "stockbook.audit_sinks"

AUDIT_ACTIONS = ("CREATE", "UPDATE", "DELETE", "OVERRIDE", "CONVERT")


@dataclass(frozen=True)
class AuditIntent:
    tenant_id: int
    principal_id: str | None
    action: str
    entity: str
    entity_id: str | None

    @property
    def log_action(self) -> str:
        return f"{self.action}_{self.entity}"


AuditSink = Callable[[AuditIntent], None]


class DatabaseAuditSink:
    """Persist intents as AuditLog rows."""

    def __call__(self, intent: AuditIntent) -> None:
        db.session.add(AuditLog(
            tenant_id=intent.tenant_id,
            principal_id=intent.principal_id,
            action=intent.log_action,
            entity=intent.entity,
            entity_id=intent.entity_id,
        ))
        db.session.commit()


def init_app(app) -> None:
    app.extensions.setdefault(EXTENSION_KEY, [DatabaseAuditSink()])


def get_sinks() -> list[AuditSink]:
    return current_app.extensions.setdefault(EXTENSION_KEY, [])


def register_sink(sink: AuditSink) -> None:
    get_sinks().append(sink)


def emit(intent: AuditIntent) -> None:
    """
    Hand an intent to every sink. Call only after the business commit.

    Never raises.
    """
    if intent.action not in AUDIT_ACTIONS:
        logger.warning("Dropping audit intent with unknown action %s", intent.action)
        return

    for sink in list(get_sinks()):
        try:
            sink(intent)
        except Exception:
            db.session.rollback()
            logger.warning(
                "Audit sink %r failed for %s %s",
                sink, intent.log_action, intent.entity_id, exc_info=True,
            )


def record(principal, action: str, entity: str, entity_id) -> None:
    emit(AuditIntent(
        tenant_id=principal.tenant_id,
        principal_id=principal.principal_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
    ))


def list_audit_logs(principal, *, limit: int = 100, entity: str | None = None) -> Result[list[AuditLog]]:
    """Owner-only view of the tenant's audit trail, newest first."""
    gate = permission_service.check(principal, "view_audit_logs")
    if not gate.ok:
        return gate

    stmt = select(AuditLog).where(AuditLog.tenant_id == principal.tenant_id)
    if entity:
        stmt = stmt.where(AuditLog.entity == entity)
    stmt = stmt.order_by(AuditLog.id.desc()).limit(max(1, min(limit, 500)))
    return Ok(db.session.execute(stmt).scalars().all())
