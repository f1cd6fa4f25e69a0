# Overview: Sale create / edit / void; one unit of work each over stock, balance and the sale record.

"""
Sales Service

WHY: A sale touches the sale header, its lines, every sold item's stock and
(when part of it is unpaid) the customer's balance. Each operation validates
everything it can before writing, then writes through the ledgers inside one
transaction. A ledger precondition that fails mid-way (a concurrent sale took
the stock) aborts the whole transaction.

    credit = total_amount_cents - paid_amount_cents

Edit and void are owner-only (void_sales). Inside one unit of work increments
are applied before decrements, so an edit that keeps an item never dips its
stock below what the restore made available.
"""

from __future__ import annotations

from sqlalchemy import select, update

from ..extensions import db
from ..models import Customer, Quotation, Sale, SaleItem
from ..results import ErrorKind, Err, Ok, Result
from ..validation import LineInput
from . import audit_service, balance_ledger, permission_service, stock_ledger
from .concurrency import run_in_transaction
from .pricing import check_lines, payment_type_for, price_lines, quantities, resolve_paid, total_of
from .tenant_service import get_scoped, list_scoped


def _sale_lines(sale_id: int) -> list[SaleItem]:
    return db.session.execute(
        select(SaleItem).where(SaleItem.sale_id == sale_id).order_by(SaleItem.id)
    ).scalars().all()


def credit_customer(tenant_id: int, customer_id: int | None, credit: int) -> Result[Customer | None]:
    """Resolve the customer and refuse credit that has nobody to owe it."""
    customer = None
    if customer_id is not None:
        found = balance_ledger.load_party(Customer, tenant_id, customer_id)
        if not found.ok:
            return found
        customer = found.value
    if credit > 0 and customer is None:
        return Err(
            ErrorKind.VALIDATION,
            "A customer is required when part of the total is unpaid",
            credit_amount_cents=credit,
        )
    return Ok(customer)


def write_sale(tenant_id: int, principal_id: str, customer_id: int | None, priced, paid: int) -> Sale:
    """
    Insert the sale and its lines, take the stock, book the credit.

    Must run inside an open unit of work whose caller already validated
    stock and customer. Shared with quotation conversion.
    """
    total = total_of(priced)
    credit = total - paid

    sale = Sale(
        tenant_id=tenant_id,
        customer_id=customer_id,
        total_amount_cents=total,
        paid_amount_cents=paid,
        payment_type=payment_type_for(credit),
        created_by=principal_id,
    )
    db.session.add(sale)
    db.session.flush()

    for line in priced:
        db.session.add(SaleItem(
            sale_id=sale.id,
            item_id=line.item_id,
            quantity=line.quantity,
            price_cents=line.unit_cents,
        ))
    for item_id, qty in sorted(quantities(priced).items()):
        stock_ledger.decrement(tenant_id, item_id, qty)

    if credit > 0:
        balance_ledger.increment(Customer, tenant_id, customer_id, credit)

    return sale


def create_sale(
    principal,
    *,
    lines: list[LineInput],
    customer_id: int | None = None,
    paid_amount_cents: int | None = None,
) -> Result[Sale]:
    """
    Create a committed sale.

    Stock for every line must be available now; the unpaid part is added to
    the customer's balance. paid is clamped to the total.
    """
    gate = permission_service.check(principal, "create_sale")
    if not gate.ok:
        return gate
    checked = check_lines(lines)
    if not checked.ok:
        return checked
    tenant_id = principal.tenant_id

    def _op() -> Result[Sale]:
        items = stock_ledger.load_items(tenant_id, [line.item_id for line in lines])
        if not items.ok:
            return items

        priced = price_lines(lines, items.value, "selling_price_cents")
        if not priced.ok:
            return priced

        total = total_of(priced.value)
        resolved = resolve_paid(paid_amount_cents, total)
        if not resolved.ok:
            return resolved
        paid = resolved.value

        customer = credit_customer(tenant_id, customer_id, total - paid)
        if not customer.ok:
            return customer

        stock = stock_ledger.check_available(items.value, quantities(priced.value))
        if not stock.ok:
            return stock

        return Ok(write_sale(tenant_id, principal.principal_id, customer_id, priced.value, paid))

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", "Sale", result.value.id)
    return result


def edit_sale(
    principal,
    sale_id: int,
    *,
    lines: list[LineInput],
    customer_id: int | None = None,
    paid_amount_cents: int | None = None,
) -> Result[Sale]:
    """
    Replace a sale's lines, customer and payment in one unit of work.

    Stock check per new line: current + old quantity of that item >= new
    quantity. Balance check: the old credit can be taken back from the old
    customer (after the new credit when it is the same customer).
    Writes: restore old stock, drop old lines, insert new lines, take new
    stock, book new credit, reverse old credit, update the header.
    """
    gate = permission_service.check(principal, "void_sales")
    if not gate.ok:
        return gate
    checked = check_lines(lines)
    if not checked.ok:
        return checked
    tenant_id = principal.tenant_id

    def _op() -> Result[Sale]:
        found = get_scoped(Sale, tenant_id, sale_id)
        if not found.ok:
            return found
        sale = found.value

        old_lines = _sale_lines(sale.id)
        old_qty = quantities(old_lines)
        old_customer_id = sale.customer_id
        old_credit = sale.credit_amount_cents

        items = stock_ledger.load_items(tenant_id, {line.item_id for line in lines} | set(old_qty))
        if not items.ok:
            return items

        priced = price_lines(lines, items.value, "selling_price_cents")
        if not priced.ok:
            return priced

        total = total_of(priced.value)
        resolved = resolve_paid(paid_amount_cents, total)
        if not resolved.ok:
            return resolved
        paid = resolved.value
        new_credit = total - paid

        customer = credit_customer(tenant_id, customer_id, new_credit)
        if not customer.ok:
            return customer

        new_qty = quantities(priced.value)
        required = {item_id: qty - old_qty.get(item_id, 0) for item_id, qty in new_qty.items()}
        stock = stock_ledger.check_available(items.value, required)
        if not stock.ok:
            return stock

        if old_credit > 0 and old_customer_id is not None:
            old_customer = balance_ledger.get_party(Customer, tenant_id, old_customer_id)
            if old_customer is None:
                return Err(ErrorKind.NOT_FOUND, "Customer not found", customer_id=old_customer_id)
            incoming = new_credit if customer_id == old_customer_id else 0
            if old_customer.balance_cents + incoming < old_credit:
                return Err(
                    ErrorKind.INSUFFICIENT_BALANCE,
                    "The customer has already paid part of this sale; its credit cannot be reversed",
                    customer_id=old_customer_id,
                    balance_cents=old_customer.balance_cents,
                    credit_amount_cents=old_credit,
                )

        for item_id, qty in sorted(old_qty.items()):
            stock_ledger.increment(tenant_id, item_id, qty)
        for line in old_lines:
            db.session.delete(line)
        db.session.flush()

        for line in priced.value:
            db.session.add(SaleItem(
                sale_id=sale.id,
                item_id=line.item_id,
                quantity=line.quantity,
                price_cents=line.unit_cents,
            ))
        for item_id, qty in sorted(new_qty.items()):
            stock_ledger.decrement(tenant_id, item_id, qty)

        if new_credit > 0:
            balance_ledger.increment(Customer, tenant_id, customer_id, new_credit)
        if old_credit > 0 and old_customer_id is not None:
            balance_ledger.decrement(Customer, tenant_id, old_customer_id, old_credit)

        sale.customer_id = customer_id
        sale.total_amount_cents = total
        sale.paid_amount_cents = paid
        sale.payment_type = payment_type_for(new_credit)
        db.session.flush()
        return Ok(sale)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "UPDATE", "Sale", sale_id)
    return result


def void_sale(principal, sale_id: int) -> Result[dict]:
    """
    Reverse a sale and delete it.

    Stock for every line goes back; the sale's credit comes off the
    customer's balance. Returns the voided sale as it was.
    """
    gate = permission_service.check(principal, "void_sales")
    if not gate.ok:
        return gate
    tenant_id = principal.tenant_id

    def _op() -> Result[dict]:
        found = get_scoped(Sale, tenant_id, sale_id)
        if not found.ok:
            return found
        sale = found.value
        lines = _sale_lines(sale.id)
        credit = sale.credit_amount_cents

        if credit > 0 and sale.customer_id is not None:
            customer = balance_ledger.get_party(Customer, tenant_id, sale.customer_id)
            if customer is None:
                return Err(ErrorKind.NOT_FOUND, "Customer not found", customer_id=sale.customer_id)
            if customer.balance_cents < credit:
                return Err(
                    ErrorKind.INSUFFICIENT_BALANCE,
                    "The customer has already paid part of this sale; its credit cannot be reversed",
                    customer_id=customer.id,
                    balance_cents=customer.balance_cents,
                    credit_amount_cents=credit,
                )

        snapshot = sale.to_dict(include_items=False)
        snapshot["items"] = [line.to_dict() for line in lines]

        for item_id, qty in sorted(quantities(lines).items()):
            stock_ledger.increment(tenant_id, item_id, qty)
        if credit > 0 and sale.customer_id is not None:
            balance_ledger.decrement(Customer, tenant_id, sale.customer_id, credit)

        # A converted quotation stays converted; it just loses the link
        db.session.execute(
            update(Quotation)
            .where(Quotation.tenant_id == tenant_id, Quotation.converted_sale_id == sale.id)
            .values(converted_sale_id=None)
            .execution_options(synchronize_session=False)
        )
        for line in lines:
            db.session.delete(line)
        db.session.delete(sale)
        db.session.flush()
        return Ok(snapshot)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "DELETE", "Sale", sale_id)
    return result


def get_sale(principal, sale_id: int) -> Result[Sale]:
    gate = permission_service.check(principal, "create_sale")
    if not gate.ok:
        return gate
    return get_scoped(Sale, principal.tenant_id, sale_id)


def list_sales(principal, *, limit: int = 50) -> Result[list[Sale]]:
    gate = permission_service.check(principal, "create_sale")
    if not gate.ok:
        return gate
    return Ok(list_scoped(Sale, principal.tenant_id, limit=limit))
