# Overview: Stock ledger; the only code that writes Item.quantity.

"""
Stock Ledger

WHY: Item quantities change only through deltas (increment/decrement) or the
audited administrative override (set_quantity). Every write is a single
conditional UPDATE filtered by tenant:

    UPDATE items SET quantity = quantity - :n
     WHERE id = :id AND tenant_id = :tenant AND quantity >= :n

Zero rows affected is the authoritative failure signal. It raises
LedgerConflict so the enclosing unit of work aborts as a whole instead of
skipping the line.

The read helpers (load_items, check_available) let callers reject short stock
before anything is written; the conditional write still guards the race.
"""

from __future__ import annotations

from sqlalchemy import select, update

from ..extensions import db
from ..models import Item
from ..results import ErrorKind, Err, Ok, Result
from .concurrency import LedgerConflict


def load_items(tenant_id: int, item_ids) -> Result[dict[int, Item]]:
    """Fetch items by id within the tenant; any missing id is NOT_FOUND."""
    wanted = set(item_ids)
    if not wanted:
        return Ok({})
    rows = db.session.execute(
        select(Item).where(Item.tenant_id == tenant_id, Item.id.in_(wanted))
    ).scalars().all()
    found = {item.id: item for item in rows}
    missing = sorted(wanted - set(found))
    if missing:
        return Err(ErrorKind.NOT_FOUND, f"Item {missing[0]} not found", item_ids=missing)
    return Ok(found)


def check_available(items: dict[int, Item], required: dict[int, int]) -> Result:
    """
    Check that each item can give up `required[item_id]` units.

    `required` is the net amount that will leave stock; values <= 0 need no
    stock. All short items are reported together.
    """
    short = []
    for item_id, qty in sorted(required.items()):
        if qty <= 0:
            continue
        available = items[item_id].quantity
        if available < qty:
            short.append({
                "item_id": item_id,
                "name": items[item_id].name,
                "requested": qty,
                "available": available,
            })
    if short:
        first = short[0]
        return Err(
            ErrorKind.INSUFFICIENT_STOCK,
            f"Insufficient stock for {first['name']}: {first['available']} available, {first['requested']} requested",
            items=short,
        )
    return Ok()


def current_quantity(tenant_id: int, item_id: int) -> int | None:
    return db.session.execute(
        select(Item.quantity).where(Item.id == item_id, Item.tenant_id == tenant_id)
    ).scalar_one_or_none()


def increment(tenant_id: int, item_id: int, n: int) -> None:
    if n <= 0:
        raise ValueError("increment requires a positive quantity")
    stmt = (
        update(Item)
        .where(Item.id == item_id, Item.tenant_id == tenant_id)
        .values(quantity=Item.quantity + n)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount == 0:
        raise LedgerConflict.of(ErrorKind.NOT_FOUND, f"Item {item_id} not found", item_id=item_id)


def decrement(tenant_id: int, item_id: int, n: int) -> None:
    if n <= 0:
        raise ValueError("decrement requires a positive quantity")
    stmt = (
        update(Item)
        .where(Item.id == item_id, Item.tenant_id == tenant_id, Item.quantity >= n)
        .values(quantity=Item.quantity - n)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount == 0:
        available = current_quantity(tenant_id, item_id)
        if available is None:
            raise LedgerConflict.of(ErrorKind.NOT_FOUND, f"Item {item_id} not found", item_id=item_id)
        raise LedgerConflict.of(
            ErrorKind.INSUFFICIENT_STOCK,
            f"Insufficient stock for item {item_id}: {available} available, {n} requested",
            items=[{"item_id": item_id, "requested": n, "available": available}],
        )


def apply_delta(tenant_id: int, item_id: int, delta: int) -> None:
    """Signed delta: positive increments, negative decrements, zero is a no-op."""
    if delta > 0:
        increment(tenant_id, item_id, delta)
    elif delta < 0:
        decrement(tenant_id, item_id, -delta)


def set_quantity(tenant_id: int, item_id: int, expected: int, new_quantity: int) -> None:
    """
    Administrative absolute write. Only used by the quantity override.

    `expected` is the quantity the caller read; if stock moved in between the
    write matches nothing and the override is reported as a CONFLICT.
    """
    if new_quantity < 0:
        raise ValueError("quantity cannot be negative")
    stmt = (
        update(Item)
        .where(Item.id == item_id, Item.tenant_id == tenant_id, Item.quantity == expected)
        .values(quantity=new_quantity)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount == 0:
        raise LedgerConflict.of(
            ErrorKind.CONFLICT,
            "Item quantity changed while the override was being applied",
            item_id=item_id,
            expected_quantity=expected,
        )


def refresh_cost_price(tenant_id: int, item_id: int, cost_price_cents: int) -> None:
    """Receiving stock updates the item's cost to the latest purchase cost."""
    db.session.execute(
        update(Item)
        .where(Item.id == item_id, Item.tenant_id == tenant_id)
        .values(cost_price_cents=cost_price_cents)
        .execution_options(synchronize_session=False)
    )
