from __future__ import annotations

from ..extensions import db
from stockbook.time_utils import to_utc_z


class SecurityEvent(db.Model):
    """
    Security event log with tenant context.

    WHY: Track authorization denials so repeated attempts by a principal are
    visible. Written best effort by the permission gate; a failed write never
    changes the gate's answer.

    IMMUTABLE: Never update or delete. Append-only.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_principal_type", "principal_id", "event_type"),
        db.Index("ix_security_events_tenant_occurred", "tenant_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Nullable: NO_TENANT denials have no tenant to record
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=True, index=True)
    principal_id = db.Column(db.String(64), nullable=True, index=True)
    role = db.Column(db.String(32), nullable=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)  # PERMISSION_DENIED, TENANT_CONTEXT_MISSING
    resource = db.Column(db.String(128), nullable=True)
    action = db.Column(db.String(64), nullable=True)

    success = db.Column(db.Boolean, nullable=False)
    reason = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "principal_id": self.principal_id,
            "role": self.role,
            "event_type": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "occurred_at": to_utc_z(self.occurred_at),
        }
