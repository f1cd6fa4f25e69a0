# Overview: Tenant-scoped lookups shared by every service.

"""
MULTI-TENANT: Every read that takes an id from the caller goes through
get_scoped, which filters on tenant_id. A row owned by another tenant and a
row that does not exist produce the same NOT_FOUND.
"""

from __future__ import annotations

from sqlalchemy import select

from ..extensions import db
from ..models import Tenant
from ..results import ErrorKind, Err, Ok, Result


def get_scoped(model, tenant_id: int, entity_id: int, *, label: str | None = None) -> Result:
    row = db.session.execute(
        select(model).where(model.id == entity_id, model.tenant_id == tenant_id)
    ).scalar_one_or_none()
    if row is None:
        name = label or model.__name__
        return Err(ErrorKind.NOT_FOUND, f"{name} not found", entity=name, id=entity_id)
    return Ok(row)


def list_scoped(model, tenant_id: int, *, order_by=None, limit: int | None = None):
    stmt = select(model).where(model.tenant_id == tenant_id)
    stmt = stmt.order_by(order_by if order_by is not None else model.id.desc())
    if limit:
        stmt = stmt.limit(limit)
    return db.session.execute(stmt).scalars().all()


def create_tenant(name: str, code: str | None = None, *, enable_sms_notifications: bool = False) -> Tenant:
    tenant = Tenant(name=name, code=code, enable_sms_notifications=enable_sms_notifications)
    db.session.add(tenant)
    db.session.commit()
    return tenant
