from __future__ import annotations

from ..extensions import db
from stockbook.time_utils import to_utc_z


class AuditLog(db.Model):
    """
    Business audit trail written by the default audit sink.

    action is "<VERB>_<Entity>", e.g. CREATE_Sale, OVERRIDE_Item, CONVERT_Quotation.
    Rows are written after the business transaction commits, in their own
    transaction; a missing row never means the operation did not happen.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_tenant_created", "tenant_id", "created_at"),
        db.Index("ix_audit_logs_entity", "entity", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)
    principal_id = db.Column(db.String(64), nullable=True)

    action = db.Column(db.String(64), nullable=False)
    entity = db.Column(db.String(64), nullable=False)
    entity_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "principal_id": self.principal_id,
            "action": self.action,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "created_at": to_utc_z(self.created_at),
        }
