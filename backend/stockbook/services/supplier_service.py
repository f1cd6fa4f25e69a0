# Overview: Supplier records.

from __future__ import annotations

from ..extensions import db
from ..models import Supplier
from ..results import ErrorKind, Err, Ok, Result
from . import audit_service, permission_service
from .concurrency import run_in_transaction
from .tenant_service import get_scoped, list_scoped


def create_supplier(principal, *, name: str, phone: str | None = None, email: str | None = None) -> Result[Supplier]:
    gate = permission_service.check(principal, "create_suppliers")
    if not gate.ok:
        return gate
    if not name or not name.strip():
        return Err(ErrorKind.VALIDATION, "name is required")

    def _op() -> Result[Supplier]:
        supplier = Supplier(tenant_id=principal.tenant_id, name=name.strip(), phone=phone, email=email, balance_cents=0)
        db.session.add(supplier)
        db.session.flush()
        return Ok(supplier)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", "Supplier", result.value.id)
    return result


def list_suppliers(principal) -> Result[list[Supplier]]:
    gate = permission_service.check(principal, "view_suppliers")
    if not gate.ok:
        return gate
    return Ok(list_scoped(Supplier, principal.tenant_id, order_by=Supplier.name))


def get_supplier(principal, supplier_id: int) -> Result[Supplier]:
    gate = permission_service.check(principal, "view_suppliers")
    if not gate.ok:
        return gate
    return get_scoped(Supplier, principal.tenant_id, supplier_id)
