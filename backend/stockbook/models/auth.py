from __future__ import annotations

from ..extensions import db
from stockbook.time_utils import to_utc_z


class SessionToken(db.Model):
    """
    Bearer session issued by the identity collaborator.

    MULTI-TENANT: The tenant binding and role are captured when the session is
    issued and are immutable for its lifetime. tenant_id may be NULL: such a
    session authenticates but every ledger operation answers NO_TENANT.

    SECURITY NOTES:
    - Tokens stored hashed (SHA-256), never in plaintext
    - Absolute expiry (SESSION_MAX_AGE_HOURS)
    - Revocable
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_principal_active", "principal_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    principal_id = db.Column(db.String(64), nullable=False, index=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=True, index=True)
    role = db.Column(db.String(32), nullable=False)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    tenant = db.relationship("Tenant")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "principal_id": self.principal_id,
            "tenant_id": self.tenant_id,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
