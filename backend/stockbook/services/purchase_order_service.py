# Overview: Purchase orders: create, edit, DRAFT-only delete, and receiving into a purchase.

"""
Purchase Order Service

Receiving (conversion) needs a supplier and a non-terminal order. There is
no stock check: receiving only adds stock. Each received line also becomes
the item's current cost price.

The claim is a conditional write, so two concurrent receipts of the same
order cannot both create a purchase:

    UPDATE purchase_orders SET status='RECEIVED', received_at=:now
     WHERE id=:id AND tenant_id=:tenant AND status NOT IN ('RECEIVED', 'CANCELLED')
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select, update

from ..extensions import db
from ..models import Purchase, PurchaseOrder, PurchaseOrderItem, Supplier
from ..results import ErrorKind, Err, Ok, Result
from ..validation import LineInput
from stockbook.time_utils import utcnow
from . import audit_service, balance_ledger, lifecycle_service, permission_service, stock_ledger
from .concurrency import LedgerConflict, run_in_transaction
from .pricing import PricedLine, check_lines, price_lines, total_of
from .purchase_service import write_purchase
from .tenant_service import get_scoped, list_scoped


@dataclass(frozen=True)
class PurchaseOrderConversion:
    purchase_order: PurchaseOrder
    purchase: Purchase

    def to_dict(self) -> dict:
        return {
            "purchase_order": self.purchase_order.to_dict(include_items=False),
            "purchase": self.purchase.to_dict(),
        }


def _order_lines(order_id: int) -> list[PurchaseOrderItem]:
    return db.session.execute(
        select(PurchaseOrderItem)
        .where(PurchaseOrderItem.purchase_order_id == order_id)
        .order_by(PurchaseOrderItem.id)
    ).scalars().all()


def create_purchase_order(
    principal,
    *,
    lines: list[LineInput],
    supplier_id: int | None = None,
    note: str | None = None,
    expected_at: datetime | None = None,
) -> Result[PurchaseOrder]:
    gate = permission_service.check(principal, "create_purchase_order")
    if not gate.ok:
        return gate
    checked = check_lines(lines)
    if not checked.ok:
        return checked
    tenant_id = principal.tenant_id

    def _op() -> Result[PurchaseOrder]:
        if supplier_id is not None:
            supplier = balance_ledger.load_party(Supplier, tenant_id, supplier_id)
            if not supplier.ok:
                return supplier

        items = stock_ledger.load_items(tenant_id, [line.item_id for line in lines])
        if not items.ok:
            return items
        priced = price_lines(lines, items.value, "cost_price_cents")
        if not priced.ok:
            return priced

        order = PurchaseOrder(
            tenant_id=tenant_id,
            supplier_id=supplier_id,
            status="DRAFT",
            total_amount_cents=total_of(priced.value),
            note=note,
            expected_at=expected_at,
            created_by=principal.principal_id,
        )
        db.session.add(order)
        db.session.flush()
        for line in priced.value:
            db.session.add(PurchaseOrderItem(
                purchase_order_id=order.id,
                item_id=line.item_id,
                item_name=line.item_name,
                quantity=line.quantity,
                cost_price_cents=line.unit_cents,
            ))
        db.session.flush()
        return Ok(order)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", "PurchaseOrder", result.value.id)
    return result


PURCHASE_ORDER_EDITABLE = ("status", "note", "expected_at")


def update_purchase_order(principal, order_id: int, **changes) -> Result[PurchaseOrder]:
    """
    Edit a DRAFT or SENT order's status, note or expected_at.

    Status moves between DRAFT, SENT and CANCELLED; RECEIVED orders and
    CANCELLED ones do not change at all. Only the keywords passed are
    written, so note=None or expected_at=None clears that field.
    """
    unknown = set(changes) - set(PURCHASE_ORDER_EDITABLE)
    if unknown:
        raise TypeError(f"update_purchase_order() got unexpected fields: {', '.join(sorted(unknown))}")
    gate = permission_service.check(principal, "create_purchase_order")
    if not gate.ok:
        return gate
    if not changes:
        return Err(ErrorKind.VALIDATION, "Nothing to update")
    tenant_id = principal.tenant_id

    def _op() -> Result[PurchaseOrder]:
        found = get_scoped(PurchaseOrder, tenant_id, order_id)
        if not found.ok:
            return found
        order = found.value

        if "status" in changes:
            allowed = lifecycle_service.purchase_order_status_change(order, changes["status"])
        else:
            allowed = lifecycle_service.purchase_order_can_edit(order)
        if not allowed.ok:
            return allowed

        changed = db.session.execute(
            update(PurchaseOrder)
            .where(
                PurchaseOrder.id == order.id,
                PurchaseOrder.tenant_id == tenant_id,
                PurchaseOrder.status.notin_(lifecycle_service.PURCHASE_ORDER_TERMINAL),
            )
            .values(**changes)
            .execution_options(synchronize_session=False)
        ).rowcount
        if changed == 0:
            raise LedgerConflict.of(
                ErrorKind.CONFLICT,
                "Purchase order was received or cancelled in the meantime",
                purchase_order_id=order.id,
            )
        return Ok(order)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "UPDATE", "PurchaseOrder", order_id)
    return result


def delete_purchase_order(principal, order_id: int) -> Result[dict]:
    gate = permission_service.check(principal, "delete_purchase_order")
    if not gate.ok:
        return gate
    tenant_id = principal.tenant_id

    def _op() -> Result[dict]:
        found = get_scoped(PurchaseOrder, tenant_id, order_id)
        if not found.ok:
            return found
        order = found.value

        allowed = lifecycle_service.purchase_order_can_delete(order)
        if not allowed.ok:
            return allowed
        snapshot = order.to_dict()

        db.session.execute(
            delete(PurchaseOrderItem)
            .where(PurchaseOrderItem.purchase_order_id == order.id)
            .execution_options(synchronize_session=False)
        )
        deleted = db.session.execute(
            delete(PurchaseOrder)
            .where(
                PurchaseOrder.id == order.id,
                PurchaseOrder.tenant_id == tenant_id,
                PurchaseOrder.status == "DRAFT",
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        if deleted == 0:
            raise LedgerConflict.of(
                ErrorKind.CONFLICT,
                "Only DRAFT purchase orders can be deleted",
                purchase_order_id=order.id,
            )
        return Ok(snapshot)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "DELETE", "PurchaseOrder", order_id)
    return result


def convert_purchase_order(
    principal,
    order_id: int,
    *,
    paid_amount_cents: int | None = None,
) -> Result[PurchaseOrderConversion]:
    """
    Receive an order into a purchase exactly once.

    paid defaults to 0 and must satisfy 0 <= paid <= total; the rest is
    credit owed to the supplier.
    """
    gate = permission_service.check(principal, "create_purchase")
    if not gate.ok:
        return gate
    tenant_id = principal.tenant_id

    def _op() -> Result[PurchaseOrderConversion]:
        found = get_scoped(PurchaseOrder, tenant_id, order_id)
        if not found.ok:
            return found
        order = found.value

        allowed = lifecycle_service.purchase_order_can_convert(order)
        if not allowed.ok:
            return allowed

        supplier = balance_ledger.load_party(Supplier, tenant_id, order.supplier_id)
        if not supplier.ok:
            return supplier

        lines = _order_lines(order.id)
        if not lines:
            return Err(ErrorKind.VALIDATION, "Purchase order has no items", purchase_order_id=order.id)

        items = stock_ledger.load_items(tenant_id, {line.item_id for line in lines})
        if not items.ok:
            return items

        priced = [
            PricedLine(item_id=line.item_id, item_name=line.item_name, quantity=line.quantity, unit_cents=line.cost_price_cents)
            for line in lines
        ]
        total = total_of(priced)
        paid = 0 if paid_amount_cents is None else paid_amount_cents
        if paid < 0 or paid > total:
            return Err(
                ErrorKind.VALIDATION,
                "paid_amount_cents must be between 0 and the order total",
                paid_amount_cents=paid,
                total_amount_cents=total,
            )

        claimed = db.session.execute(
            update(PurchaseOrder)
            .where(
                PurchaseOrder.id == order.id,
                PurchaseOrder.tenant_id == tenant_id,
                PurchaseOrder.status.notin_(lifecycle_service.PURCHASE_ORDER_TERMINAL),
            )
            .values(status=lifecycle_service.PURCHASE_ORDER_RECEIVED_STATUS, received_at=utcnow())
            .execution_options(synchronize_session=False)
        ).rowcount
        if claimed == 0:
            raise LedgerConflict.of(
                ErrorKind.CONFLICT,
                "Purchase order has already been received or was cancelled",
                purchase_order_id=order.id,
            )

        purchase = write_purchase(tenant_id, principal.principal_id, order.supplier_id, priced, paid, refresh_cost=True)
        db.session.execute(
            update(PurchaseOrder)
            .where(PurchaseOrder.id == order.id, PurchaseOrder.tenant_id == tenant_id)
            .values(converted_purchase_id=purchase.id)
            .execution_options(synchronize_session=False)
        )
        return Ok(PurchaseOrderConversion(purchase_order=order, purchase=purchase))

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CONVERT", "PurchaseOrder", order_id)
        audit_service.record(principal, "CREATE", "Purchase", result.value.purchase.id)
    return result


def get_purchase_order(principal, order_id: int) -> Result[PurchaseOrder]:
    gate = permission_service.check(principal, "view_purchase_orders")
    if not gate.ok:
        return gate
    return get_scoped(PurchaseOrder, principal.tenant_id, order_id)


def list_purchase_orders(principal, *, limit: int = 50) -> Result[list[PurchaseOrder]]:
    gate = permission_service.check(principal, "view_purchase_orders")
    if not gate.ok:
        return gate
    return Ok(list_scoped(PurchaseOrder, principal.tenant_id, limit=limit))
