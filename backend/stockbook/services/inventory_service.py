# Overview: Manual stock movements: reasoned adjustments and the administrative quantity override.

"""
Inventory Service

Two different ways to move stock by hand, kept apart on purpose:

- Stock adjustment (adjust_stock): INCREASE/DECREASE by a positive quantity
  with a mandatory reason. Ordinary ledger movement.
- Quantity override (update_items): ADD/REMOVE/SET, reason optional. SET
  writes an absolute value. Recorded as a QuantityOverride and audited as
  OVERRIDE so history never confuses it with ordinary movement. A batch
  of overrides can address items by name (bulk_override_quantities).

Neither touches a balance.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, select

from ..extensions import db
from ..models import Item, QuantityOverride, StockAdjustment
from ..results import ErrorKind, Err, Ok, Result
from ..validation import (
    MAX_QUANTITY,
    ValidationError,
    coerce_int,
    optional_text,
    require_choice,
    require_text,
)
from . import audit_service, permission_service, stock_ledger
from .concurrency import run_in_transaction
from .tenant_service import get_scoped, list_scoped

ADJUSTMENT_TYPES = ("INCREASE", "DECREASE")
OVERRIDE_MODES = ("ADD", "REMOVE", "SET")


def create_stock_adjustment(
    principal,
    *,
    item_id: int,
    adjustment_type: str,
    quantity: int,
    reason: str,
) -> Result[StockAdjustment]:
    gate = permission_service.check(principal, "adjust_stock")
    if not gate.ok:
        return gate

    if adjustment_type not in ADJUSTMENT_TYPES:
        return Err(ErrorKind.VALIDATION, f"type must be one of: {', '.join(ADJUSTMENT_TYPES)}", type=adjustment_type)
    if quantity <= 0 or quantity > MAX_QUANTITY:
        return Err(ErrorKind.VALIDATION, "quantity must be a positive number", quantity=quantity)
    if not reason or not reason.strip():
        return Err(ErrorKind.VALIDATION, "reason is required")
    tenant_id = principal.tenant_id

    def _op() -> Result[StockAdjustment]:
        found = get_scoped(Item, tenant_id, item_id)
        if not found.ok:
            return found
        item = found.value

        if adjustment_type == "DECREASE":
            stock = stock_ledger.check_available({item.id: item}, {item.id: quantity})
            if not stock.ok:
                return stock

        adjustment = StockAdjustment(
            tenant_id=tenant_id,
            item_id=item.id,
            type=adjustment_type,
            quantity=quantity,
            reason=reason.strip(),
            created_by=principal.principal_id,
        )
        db.session.add(adjustment)

        if adjustment_type == "INCREASE":
            stock_ledger.increment(tenant_id, item.id, quantity)
        else:
            stock_ledger.decrement(tenant_id, item.id, quantity)
        db.session.flush()
        return Ok(adjustment)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", "StockAdjustment", result.value.id)
    return result


def override_quantity(
    principal,
    *,
    item_id: int,
    mode: str,
    quantity: int,
    reason: str | None = None,
) -> Result[QuantityOverride]:
    """
    ADD/REMOVE move by `quantity` (> 0); SET writes `quantity` (>= 0).

    REMOVE below zero is INSUFFICIENT_STOCK. The write is guarded by the
    quantity read at the start, so a sale landing in between turns the
    override into a CONFLICT instead of silently overwriting it.
    """
    gate = permission_service.check(principal, "update_items")
    if not gate.ok:
        return gate

    if mode not in OVERRIDE_MODES:
        return Err(ErrorKind.VALIDATION, f"type must be one of: {', '.join(OVERRIDE_MODES)}", type=mode)
    if quantity < 0 or quantity > MAX_QUANTITY:
        return Err(ErrorKind.VALIDATION, "quantity must be a non-negative number", quantity=quantity)
    if mode != "SET" and quantity == 0:
        return Err(ErrorKind.VALIDATION, "quantity must be greater than 0 for add/remove adjustments")
    tenant_id = principal.tenant_id

    def _op() -> Result[QuantityOverride]:
        found = get_scoped(Item, tenant_id, item_id)
        if not found.ok:
            return found
        previous = found.value.quantity

        if mode == "ADD":
            new_quantity = previous + quantity
        elif mode == "REMOVE":
            new_quantity = previous - quantity
            if new_quantity < 0:
                return Err(
                    ErrorKind.INSUFFICIENT_STOCK,
                    f"Cannot remove {quantity} units, only {previous} in stock",
                    items=[{"item_id": item_id, "requested": quantity, "available": previous}],
                )
        else:
            new_quantity = quantity

        stock_ledger.set_quantity(tenant_id, item_id, previous, new_quantity)
        override = QuantityOverride(
            tenant_id=tenant_id,
            item_id=item_id,
            mode=mode,
            previous_quantity=previous,
            new_quantity=new_quantity,
            reason=(reason or "").strip() or None,
            created_by=principal.principal_id,
        )
        db.session.add(override)
        db.session.flush()
        return Ok(override)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "OVERRIDE", "Item", item_id)
    return result


def _item_id_by_name(tenant_id: int, name: str) -> int:
    matches = db.session.execute(
        select(Item.id)
        .where(Item.tenant_id == tenant_id, func.lower(Item.name) == name.lower())
        .limit(2)
    ).scalars().all()
    if not matches:
        raise ValidationError(f"no item named '{name}'")
    if len(matches) > 1:
        raise ValidationError(f"more than one item is named '{name}'")
    return matches[0]


def bulk_override_quantities(principal, rows) -> Result[dict]:
    """
    Apply [{name, type, quantity, reason?}, ...] as quantity overrides.

    Items are matched by name, case-insensitively, within the tenant. Each
    row goes through override_quantity in its own unit of work, so one bad
    row never undoes the others. Returns {"updated", "skipped", "errors"}
    with 1-based "Row N: ..." messages.
    """
    gate = permission_service.check(principal, "update_items")
    if not gate.ok:
        return gate

    limit = current_app.config.get("BULK_ITEM_ADJUST_LIMIT", 500)
    if not isinstance(rows, list) or not rows:
        return Err(ErrorKind.VALIDATION, "No adjustments provided")
    if len(rows) > limit:
        return Err(ErrorKind.VALIDATION, f"Maximum {limit} adjustments per request", count=len(rows))

    summary = {"updated": 0, "skipped": 0, "errors": []}
    for row_num, row in enumerate(rows, start=1):
        try:
            if not isinstance(row, dict):
                raise ValidationError("must be an object")
            name = require_text(row.get("name"), "name")
            mode = require_choice(row.get("type"), "type", OVERRIDE_MODES)
            quantity = coerce_int(row.get("quantity"), "quantity")
            reason = optional_text(row.get("reason"), "reason", max_length=1000)
            item_id = _item_id_by_name(principal.tenant_id, name)
        except ValidationError as exc:
            summary["errors"].append(f"Row {row_num}: {exc}")
            summary["skipped"] += 1
            continue

        applied = override_quantity(principal, item_id=item_id, mode=mode, quantity=quantity, reason=reason)
        if applied.ok:
            summary["updated"] += 1
        else:
            summary["errors"].append(f"Row {row_num}: {applied.error.message}")
            summary["skipped"] += 1

    return Ok(summary)



def create_item(
    principal,
    *,
    name: str,
    sku: str | None = None,
    quantity: int = 0,
    cost_price_cents: int = 0,
    selling_price_cents: int = 0,
) -> Result[Item]:
    """Add an item to the catalogue with its opening stock."""
    gate = permission_service.check(principal, "create_items")
    if not gate.ok:
        return gate
    if not name or not name.strip():
        return Err(ErrorKind.VALIDATION, "name is required")
    if quantity < 0 or quantity > MAX_QUANTITY:
        return Err(ErrorKind.VALIDATION, "quantity must be a non-negative number", quantity=quantity)
    if cost_price_cents < 0 or selling_price_cents < 0:
        return Err(ErrorKind.VALIDATION, "prices must be non-negative amounts")
    tenant_id = principal.tenant_id

    def _op() -> Result[Item]:
        if sku:
            taken = db.session.execute(
                select(Item.id).where(Item.tenant_id == tenant_id, Item.sku == sku)
            ).first()
            if taken:
                return Err(ErrorKind.CONFLICT, f"SKU {sku} is already in use", sku=sku)
        item = Item(
            tenant_id=tenant_id,
            name=name.strip(),
            sku=sku,
            quantity=quantity,
            cost_price_cents=cost_price_cents,
            selling_price_cents=selling_price_cents,
        )
        db.session.add(item)
        db.session.flush()
        return Ok(item)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", "Item", result.value.id)
    return result


def list_items(principal) -> Result[list[Item]]:
    gate = permission_service.check(principal, "view_items")
    if not gate.ok:
        return gate
    return Ok(list_scoped(Item, principal.tenant_id, order_by=Item.name))


def get_item(principal, item_id: int) -> Result[Item]:
    gate = permission_service.check(principal, "view_items")
    if not gate.ok:
        return gate
    return get_scoped(Item, principal.tenant_id, item_id)
