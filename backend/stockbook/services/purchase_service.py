# Overview: Purchase create / edit / void; the mirror image of the sales engine.

"""
Purchase Service

A purchase adds stock and adds the unpaid part to what the business owes the
supplier. Reversing one (edit or void) therefore takes stock away, so those
paths check stock the way a sale does:

    current + new_qty - old_qty >= 0   for every item in old or new lines

Edit and void need void_purchases, which only OWNER holds.
"""

from __future__ import annotations

from sqlalchemy import select, update

from ..extensions import db
from ..models import Purchase, PurchaseItem, PurchaseOrder, Supplier
from ..results import ErrorKind, Err, Ok, Result
from ..validation import LineInput
from . import audit_service, balance_ledger, permission_service, stock_ledger
from .concurrency import run_in_transaction
from .pricing import check_lines, payment_type_for, price_lines, quantities, resolve_paid, total_of
from .tenant_service import get_scoped, list_scoped


def _purchase_lines(purchase_id: int) -> list[PurchaseItem]:
    return db.session.execute(
        select(PurchaseItem).where(PurchaseItem.purchase_id == purchase_id).order_by(PurchaseItem.id)
    ).scalars().all()


def _reversal_blocked(supplier, credit: int, incoming: int = 0) -> Result:
    if supplier.balance_cents + incoming < credit:
        return Err(
            ErrorKind.INSUFFICIENT_BALANCE,
            "The supplier has already been paid part of this purchase; its credit cannot be reversed",
            supplier_id=supplier.id,
            balance_cents=supplier.balance_cents,
            credit_amount_cents=credit,
        )
    return Ok()


def write_purchase(
    tenant_id: int,
    principal_id: str,
    supplier_id: int,
    priced,
    paid: int,
    *,
    refresh_cost: bool = False,
) -> Purchase:
    """
    Insert the purchase and its lines, add the stock, book the credit.

    Runs inside an open unit of work. Receiving a purchase order also moves
    each item's cost price to the received cost (refresh_cost).
    """
    total = total_of(priced)
    credit = total - paid

    purchase = Purchase(
        tenant_id=tenant_id,
        supplier_id=supplier_id,
        total_amount_cents=total,
        paid_amount_cents=paid,
        payment_type=payment_type_for(credit),
        created_by=principal_id,
    )
    db.session.add(purchase)
    db.session.flush()

    for line in priced:
        db.session.add(PurchaseItem(
            purchase_id=purchase.id,
            item_id=line.item_id,
            quantity=line.quantity,
            cost_price_cents=line.unit_cents,
        ))
    for item_id, qty in sorted(quantities(priced).items()):
        stock_ledger.increment(tenant_id, item_id, qty)
    if refresh_cost:
        for line in priced:
            stock_ledger.refresh_cost_price(tenant_id, line.item_id, line.unit_cents)

    if credit > 0:
        balance_ledger.increment(Supplier, tenant_id, supplier_id, credit)

    return purchase


def create_purchase(
    principal,
    *,
    supplier_id: int,
    lines: list[LineInput],
    paid_amount_cents: int | None = None,
) -> Result[Purchase]:
    gate = permission_service.check(principal, "create_purchase")
    if not gate.ok:
        return gate
    checked = check_lines(lines)
    if not checked.ok:
        return checked
    tenant_id = principal.tenant_id

    def _op() -> Result[Purchase]:
        supplier = balance_ledger.load_party(Supplier, tenant_id, supplier_id)
        if not supplier.ok:
            return supplier

        items = stock_ledger.load_items(tenant_id, [line.item_id for line in lines])
        if not items.ok:
            return items

        priced = price_lines(lines, items.value, "cost_price_cents")
        if not priced.ok:
            return priced

        paid = resolve_paid(paid_amount_cents, total_of(priced.value))
        if not paid.ok:
            return paid
        return Ok(write_purchase(tenant_id, principal.principal_id, supplier_id, priced.value, paid.value))

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", "Purchase", result.value.id)
    return result


def edit_purchase(
    principal,
    purchase_id: int,
    *,
    supplier_id: int,
    lines: list[LineInput],
    paid_amount_cents: int | None = None,
) -> Result[Purchase]:
    """
    Full replace. New stock is added before old stock is taken back, and the
    new credit is booked before the old credit is reversed.
    """
    gate = permission_service.check(principal, "void_purchases")
    if not gate.ok:
        return gate
    checked = check_lines(lines)
    if not checked.ok:
        return checked
    tenant_id = principal.tenant_id

    def _op() -> Result[Purchase]:
        found = get_scoped(Purchase, tenant_id, purchase_id)
        if not found.ok:
            return found
        purchase = found.value

        supplier = balance_ledger.load_party(Supplier, tenant_id, supplier_id)
        if not supplier.ok:
            return supplier

        old_lines = _purchase_lines(purchase.id)
        old_qty = quantities(old_lines)
        old_supplier_id = purchase.supplier_id
        old_credit = purchase.credit_amount_cents

        items = stock_ledger.load_items(tenant_id, {line.item_id for line in lines} | set(old_qty))
        if not items.ok:
            return items

        priced = price_lines(lines, items.value, "cost_price_cents")
        if not priced.ok:
            return priced

        total = total_of(priced.value)
        resolved = resolve_paid(paid_amount_cents, total)
        if not resolved.ok:
            return resolved
        paid = resolved.value
        new_credit = total - paid
        new_qty = quantities(priced.value)

        # Net stock leaving each item: old quantity out, new quantity in
        outgoing = {
            item_id: old_qty.get(item_id, 0) - new_qty.get(item_id, 0)
            for item_id in set(old_qty) | set(new_qty)
        }
        stock = stock_ledger.check_available(items.value, outgoing)
        if not stock.ok:
            return stock

        if old_credit > 0:
            old_supplier = balance_ledger.get_party(Supplier, tenant_id, old_supplier_id)
            if old_supplier is None:
                return Err(ErrorKind.NOT_FOUND, "Supplier not found", supplier_id=old_supplier_id)
            incoming = new_credit if supplier_id == old_supplier_id else 0
            blocked = _reversal_blocked(old_supplier, old_credit, incoming)
            if not blocked.ok:
                return blocked

        for line in old_lines:
            db.session.delete(line)
        db.session.flush()
        for line in priced.value:
            db.session.add(PurchaseItem(
                purchase_id=purchase.id,
                item_id=line.item_id,
                quantity=line.quantity,
                cost_price_cents=line.unit_cents,
            ))

        for item_id, qty in sorted(new_qty.items()):
            stock_ledger.increment(tenant_id, item_id, qty)
        for item_id, qty in sorted(old_qty.items()):
            stock_ledger.decrement(tenant_id, item_id, qty)

        if new_credit > 0:
            balance_ledger.increment(Supplier, tenant_id, supplier_id, new_credit)
        if old_credit > 0:
            balance_ledger.decrement(Supplier, tenant_id, old_supplier_id, old_credit)

        purchase.supplier_id = supplier_id
        purchase.total_amount_cents = total
        purchase.paid_amount_cents = paid
        purchase.payment_type = payment_type_for(new_credit)
        db.session.flush()
        return Ok(purchase)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "UPDATE", "Purchase", purchase_id)
    return result


def void_purchase(principal, purchase_id: int) -> Result[dict]:
    """
    Take the purchased stock back out and reverse the supplier credit.

    Fails with INSUFFICIENT_STOCK when some of the received stock has already
    been sold.
    """
    gate = permission_service.check(principal, "void_purchases")
    if not gate.ok:
        return gate
    tenant_id = principal.tenant_id

    def _op() -> Result[dict]:
        found = get_scoped(Purchase, tenant_id, purchase_id)
        if not found.ok:
            return found
        purchase = found.value
        lines = _purchase_lines(purchase.id)
        line_qty = quantities(lines)
        credit = purchase.credit_amount_cents

        items = stock_ledger.load_items(tenant_id, set(line_qty))
        if not items.ok:
            return items
        stock = stock_ledger.check_available(items.value, line_qty)
        if not stock.ok:
            return stock

        if credit > 0:
            supplier = balance_ledger.get_party(Supplier, tenant_id, purchase.supplier_id)
            if supplier is None:
                return Err(ErrorKind.NOT_FOUND, "Supplier not found", supplier_id=purchase.supplier_id)
            blocked = _reversal_blocked(supplier, credit)
            if not blocked.ok:
                return blocked

        snapshot = purchase.to_dict(include_items=False)
        snapshot["items"] = [line.to_dict() for line in lines]

        for item_id, qty in sorted(line_qty.items()):
            stock_ledger.decrement(tenant_id, item_id, qty)
        if credit > 0:
            balance_ledger.decrement(Supplier, tenant_id, purchase.supplier_id, credit)

        db.session.execute(
            update(PurchaseOrder)
            .where(PurchaseOrder.tenant_id == tenant_id, PurchaseOrder.converted_purchase_id == purchase.id)
            .values(converted_purchase_id=None)
            .execution_options(synchronize_session=False)
        )
        for line in lines:
            db.session.delete(line)
        db.session.delete(purchase)
        db.session.flush()
        return Ok(snapshot)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "DELETE", "Purchase", purchase_id)
    return result


def get_purchase(principal, purchase_id: int) -> Result[Purchase]:
    gate = permission_service.check(principal, "create_purchase")
    if not gate.ok:
        return gate
    return get_scoped(Purchase, principal.tenant_id, purchase_id)


def list_purchases(principal, *, limit: int = 50) -> Result[list[Purchase]]:
    gate = permission_service.check(principal, "create_purchase")
    if not gate.ok:
        return gate
    return Ok(list_scoped(Purchase, principal.tenant_id, limit=limit))
