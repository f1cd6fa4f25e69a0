# Overview: Bearer session storage and validation; supplies the principal for every call.

"""
Session Token Service

WHY: Every ledger operation needs (principal_id, tenant_id, role). Sessions
are issued by the identity collaborator (CLI, tests, an upstream login
service) and validated here on each request.

MULTI-TENANT: The tenant binding is captured when the session is issued and
is immutable for the session lifetime. A session without a tenant still
authenticates; the permission gate answers NO_TENANT for it.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout (SESSION_MAX_AGE_HOURS)
- Revocable
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app
from sqlalchemy import select

from ..extensions import db
from ..models import SessionToken, Tenant
from ..permissions import Role
from stockbook.time_utils import utcnow


@dataclass(frozen=True)
class Principal:
    """
    Identity attached to a call.

    tenant_id None means the principal is authenticated but not bound to any
    tenant; it can do nothing in the ledger.
    """
    principal_id: str
    tenant_id: int | None
    role: Role


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(principal_id: str, role: Role | str, tenant_id: int | None = None) -> tuple[SessionToken, str]:
    """
    Issue a session for a principal.

    Returns (session_record, plaintext_token). Only the hash is stored.

    Raises ValueError for an unknown role or an inactive/missing tenant.
    """
    parsed_role = Role.parse(role)
    if parsed_role is None:
        raise ValueError(f"Unknown role: {role}")

    if not principal_id or len(principal_id) > 64:
        raise ValueError("principal_id must be 1-64 characters")

    if tenant_id is not None:
        tenant = db.session.get(Tenant, tenant_id)
        if not tenant or not tenant.is_active:
            raise ValueError("Tenant is not active")

    plaintext_token = generate_token()
    now = utcnow()
    max_age = timedelta(hours=current_app.config.get("SESSION_MAX_AGE_HOURS", 24))

    session = SessionToken(
        principal_id=principal_id,
        tenant_id=tenant_id,
        role=parsed_role.value,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + max_age,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> Principal | None:
    """
    Resolve a bearer token to a Principal.

    Returns None if:
    - Token is unknown, expired, or revoked
    - The stored role is not a known Role
    - The bound tenant has been deactivated

    Updates last_used_at on success (activity tracking).
    """
    if not token:
        return None

    session = db.session.execute(
        select(SessionToken).where(
            SessionToken.token_hash == hash_token(token),
            SessionToken.is_revoked.is_(False),
        )
    ).scalar_one_or_none()

    if not session:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    role = Role.parse(session.role)
    if role is None:
        return None

    if session.tenant_id is not None:
        tenant = session.tenant
        if not tenant or not tenant.is_active:
            session.is_revoked = True
            session.revoked_at = now
            session.revoked_reason = "Tenant deactivated"
            db.session.commit()
            return None

    session.last_used_at = now
    db.session.commit()

    return Principal(
        principal_id=session.principal_id,
        tenant_id=session.tenant_id,
        role=role,
    )


def revoke_session(token: str, reason: str = "Revoked") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.execute(
        select(SessionToken).where(
            SessionToken.token_hash == hash_token(token),
            SessionToken.is_revoked.is_(False),
        )
    ).scalar_one_or_none()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()
    return True
