from __future__ import annotations

from ..extensions import db
from stockbook.time_utils import to_utc_z


class Tenant(db.Model):
    """
    Multi-tenant root: every business using the ledger is a Tenant.

    WHY: Shared-database multi-tenancy with strict isolation.
    Items, parties and documents belong to exactly one tenant and every
    lookup filters on tenant_id; nothing crosses the boundary.
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)  # Short code for lookups

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    # Post-commit notifications (payment receipts, balance reminders)
    enable_sms_notifications = db.Column(db.Boolean, nullable=False, default=False)
    sms_sender_id = db.Column(db.String(32), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "enable_sms_notifications": self.enable_sms_notifications,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
