# Overview: Quotations: create, edit, delete, and the one-time conversion into a sale.

"""
Quotation Service

A quotation freezes item names and prices when it is written and has no
ledger effect. Conversion is the only bridge into the ledger:

1. re-check convertibility (not converted, not REJECTED/EXPIRED)
2. re-check live stock for every line (quantities only; prices stay frozen)
3. claim the quotation with one conditional write:

       UPDATE quotations SET status='ACCEPTED', converted_at=:now
        WHERE id=:id AND tenant_id=:tenant AND converted_at IS NULL
          AND status NOT IN ('REJECTED', 'EXPIRED')

   zero rows affected -> CONFLICT (someone else converted it first)
4. write the sale through the sales engine, link it, commit

All of it is one unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select, update

from ..extensions import db
from ..models import Customer, Quotation, QuotationItem, Sale
from ..results import ErrorKind, Err, Ok, Result
from ..validation import LineInput
from stockbook.time_utils import utcnow
from . import audit_service, balance_ledger, lifecycle_service, permission_service, stock_ledger
from .concurrency import LedgerConflict, run_in_transaction
from .pricing import PricedLine, check_lines, price_lines, quantities, resolve_paid, total_of
from .sales_service import credit_customer, write_sale
from .tenant_service import get_scoped, list_scoped


@dataclass(frozen=True)
class QuotationConversion:
    quotation: Quotation
    sale: Sale

    def to_dict(self) -> dict:
        return {
            "quotation": self.quotation.to_dict(include_items=False),
            "sale": self.sale.to_dict(),
        }


def _quotation_lines(quotation_id: int) -> list[QuotationItem]:
    return db.session.execute(
        select(QuotationItem).where(QuotationItem.quotation_id == quotation_id).order_by(QuotationItem.id)
    ).scalars().all()


def create_quotation(
    principal,
    *,
    lines: list[LineInput],
    customer_id: int | None = None,
    note: str | None = None,
    valid_until: datetime | None = None,
) -> Result[Quotation]:
    gate = permission_service.check(principal, "create_quotation")
    if not gate.ok:
        return gate
    checked = check_lines(lines)
    if not checked.ok:
        return checked
    tenant_id = principal.tenant_id

    def _op() -> Result[Quotation]:
        if customer_id is not None:
            customer = balance_ledger.load_party(Customer, tenant_id, customer_id)
            if not customer.ok:
                return customer

        items = stock_ledger.load_items(tenant_id, [line.item_id for line in lines])
        if not items.ok:
            return items
        priced = price_lines(lines, items.value, "selling_price_cents")
        if not priced.ok:
            return priced

        quotation = Quotation(
            tenant_id=tenant_id,
            customer_id=customer_id,
            status="DRAFT",
            total_amount_cents=total_of(priced.value),
            note=note,
            valid_until=valid_until,
            created_by=principal.principal_id,
        )
        db.session.add(quotation)
        db.session.flush()
        for line in priced.value:
            db.session.add(QuotationItem(
                quotation_id=quotation.id,
                item_id=line.item_id,
                item_name=line.item_name,
                quantity=line.quantity,
                price_cents=line.unit_cents,
            ))
        db.session.flush()
        return Ok(quotation)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", "Quotation", result.value.id)
    return result


QUOTATION_EDITABLE = ("status", "note", "valid_until")


def update_quotation(principal, quotation_id: int, **changes) -> Result[Quotation]:
    """
    Edit an unconverted quotation's status, note or valid_until.

    Only the keywords passed are written; passing note=None or
    valid_until=None clears that field. Lines are frozen once written.
    """
    unknown = set(changes) - set(QUOTATION_EDITABLE)
    if unknown:
        raise TypeError(f"update_quotation() got unexpected fields: {', '.join(sorted(unknown))}")
    gate = permission_service.check(principal, "create_quotation")
    if not gate.ok:
        return gate
    if not changes:
        return Err(ErrorKind.VALIDATION, "Nothing to update")
    tenant_id = principal.tenant_id

    def _op() -> Result[Quotation]:
        found = get_scoped(Quotation, tenant_id, quotation_id)
        if not found.ok:
            return found
        quotation = found.value

        if "status" in changes:
            allowed = lifecycle_service.quotation_status_change(quotation, changes["status"])
        else:
            allowed = lifecycle_service.quotation_can_edit(quotation)
        if not allowed.ok:
            return allowed

        changed = db.session.execute(
            update(Quotation)
            .where(
                Quotation.id == quotation.id,
                Quotation.tenant_id == tenant_id,
                Quotation.converted_at.is_(None),
            )
            .values(**changes)
            .execution_options(synchronize_session=False)
        ).rowcount
        if changed == 0:
            raise LedgerConflict.of(
                ErrorKind.CONFLICT,
                "Quotation has already been converted to a sale",
                quotation_id=quotation.id,
            )
        return Ok(quotation)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "UPDATE", "Quotation", quotation_id)
    return result


def delete_quotation(principal, quotation_id: int) -> Result[dict]:
    """Delete an unconverted quotation. Converted ones are kept as history."""
    gate = permission_service.check(principal, "delete_quotation")
    if not gate.ok:
        return gate
    tenant_id = principal.tenant_id

    def _op() -> Result[dict]:
        found = get_scoped(Quotation, tenant_id, quotation_id)
        if not found.ok:
            return found
        quotation = found.value

        allowed = lifecycle_service.quotation_can_delete(quotation)
        if not allowed.ok:
            return allowed
        snapshot = quotation.to_dict()

        db.session.execute(
            delete(QuotationItem)
            .where(QuotationItem.quotation_id == quotation.id)
            .execution_options(synchronize_session=False)
        )
        deleted = db.session.execute(
            delete(Quotation)
            .where(
                Quotation.id == quotation.id,
                Quotation.tenant_id == tenant_id,
                Quotation.converted_at.is_(None),
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        if deleted == 0:
            raise LedgerConflict.of(
                ErrorKind.CONFLICT,
                "Quotation has already been converted to a sale",
                quotation_id=quotation.id,
            )
        return Ok(snapshot)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "DELETE", "Quotation", quotation_id)
    return result


def convert_quotation(
    principal,
    quotation_id: int,
    *,
    paid_amount_cents: int | None = None,
) -> Result[QuotationConversion]:
    """
    Turn a quotation into a sale exactly once.

    paid defaults to the full total and is clamped to it. Credit needs the
    quotation to have a customer.
    """
    gate = permission_service.check(principal, "create_sale")
    if not gate.ok:
        return gate
    tenant_id = principal.tenant_id

    def _op() -> Result[QuotationConversion]:
        found = get_scoped(Quotation, tenant_id, quotation_id)
        if not found.ok:
            return found
        quotation = found.value

        allowed = lifecycle_service.quotation_can_convert(quotation)
        if not allowed.ok:
            return allowed

        lines = _quotation_lines(quotation.id)
        if not lines:
            return Err(ErrorKind.VALIDATION, "Quotation has no items", quotation_id=quotation.id)

        priced = [
            PricedLine(item_id=line.item_id, item_name=line.item_name, quantity=line.quantity, unit_cents=line.price_cents)
            for line in lines
        ]
        total = total_of(priced)
        resolved = resolve_paid(paid_amount_cents, total, default=total)
        if not resolved.ok:
            return resolved
        paid = resolved.value

        customer = credit_customer(tenant_id, quotation.customer_id, total - paid)
        if not customer.ok:
            return customer

        items = stock_ledger.load_items(tenant_id, {line.item_id for line in lines})
        if not items.ok:
            return items
        stock = stock_ledger.check_available(items.value, quantities(priced))
        if not stock.ok:
            return stock

        claimed = db.session.execute(
            update(Quotation)
            .where(
                Quotation.id == quotation.id,
                Quotation.tenant_id == tenant_id,
                Quotation.converted_at.is_(None),
                Quotation.status.notin_(lifecycle_service.QUOTATION_BLOCKS_CONVERSION),
            )
            .values(status=lifecycle_service.QUOTATION_CONVERTED_STATUS, converted_at=utcnow())
            .execution_options(synchronize_session=False)
        ).rowcount
        if claimed == 0:
            raise LedgerConflict.of(
                ErrorKind.CONFLICT,
                "Quotation has already been converted or is no longer convertible",
                quotation_id=quotation.id,
            )

        sale = write_sale(tenant_id, principal.principal_id, quotation.customer_id, priced, paid)
        db.session.execute(
            update(Quotation)
            .where(Quotation.id == quotation.id, Quotation.tenant_id == tenant_id)
            .values(converted_sale_id=sale.id)
            .execution_options(synchronize_session=False)
        )
        return Ok(QuotationConversion(quotation=quotation, sale=sale))

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CONVERT", "Quotation", quotation_id)
        audit_service.record(principal, "CREATE", "Sale", result.value.sale.id)
    return result


def get_quotation(principal, quotation_id: int) -> Result[Quotation]:
    gate = permission_service.check(principal, "view_quotations")
    if not gate.ok:
        return gate
    return get_scoped(Quotation, principal.tenant_id, quotation_id)


def list_quotations(principal, *, status: str | None = None, limit: int = 50) -> Result[list[Quotation]]:
    gate = permission_service.check(principal, "view_quotations")
    if not gate.ok:
        return gate
    if status is None:
        return Ok(list_scoped(Quotation, principal.tenant_id, limit=limit))
    rows = db.session.execute(
        select(Quotation)
        .where(Quotation.tenant_id == principal.tenant_id, Quotation.status == status)
        .order_by(Quotation.id.desc())
        .limit(limit)
    ).scalars().all()
    return Ok(rows)
