# Overview: Line pricing and money arithmetic shared by sales, purchases and draft documents.

from __future__ import annotations

from dataclasses import dataclass

from ..models import Item
from ..results import ErrorKind, Err, Ok, Result
from ..validation import MAX_AMOUNT_CENTS, MAX_QUANTITY, LineInput

CASH = "CASH"
CREDIT = "CREDIT"


@dataclass(frozen=True)
class PricedLine:
    item_id: int
    item_name: str
    quantity: int
    unit_cents: int

    @property
    def total_cents(self) -> int:
        return self.quantity * self.unit_cents


def check_lines(lines: list[LineInput]) -> Result[None]:
    """
    Shape rules for a document's lines, applied before anything is read or written.

    At least one line; quantity in 1..MAX_QUANTITY; explicit prices
    non-negative; each item at most once.
    """
    if not lines:
        return Err(ErrorKind.VALIDATION, "At least one item is required")
    seen: set[int] = set()
    for index, line in enumerate(lines, start=1):
        if line.quantity <= 0 or line.quantity > MAX_QUANTITY:
            return Err(
                ErrorKind.VALIDATION,
                f"items[{index}]: quantity must be between 1 and {MAX_QUANTITY}",
                item_id=line.item_id,
                quantity=line.quantity,
            )
        if line.price_cents is not None and not 0 <= line.price_cents <= MAX_AMOUNT_CENTS:
            return Err(
                ErrorKind.VALIDATION,
                f"items[{index}]: price must be between 0 and {MAX_AMOUNT_CENTS}",
                item_id=line.item_id,
                price_cents=line.price_cents,
            )
        if line.item_id in seen:
            return Err(ErrorKind.VALIDATION, f"items[{index}]: item {line.item_id} listed more than once", item_id=line.item_id)
        seen.add(line.item_id)
    return Ok()


def price_lines(lines: list[LineInput], items: dict[int, Item], default_price_attr: str) -> Result[list[PricedLine]]:
    """
    Freeze a unit price on every line.

    A line without an explicit price takes the item's current price
    (`selling_price_cents` for sales, `cost_price_cents` for purchases).
    """
    priced = [
        PricedLine(
            item_id=line.item_id,
            item_name=items[line.item_id].name,
            quantity=line.quantity,
            unit_cents=line.price_cents if line.price_cents is not None else getattr(items[line.item_id], default_price_attr),
        )
        for line in lines
    ]
    total = total_of(priced)
    if total > MAX_AMOUNT_CENTS:
        return Err(
            ErrorKind.VALIDATION,
            f"Total amount cannot exceed {MAX_AMOUNT_CENTS}",
            total_amount_cents=total,
        )
    return Ok(priced)


def total_of(lines) -> int:
    return sum(line.total_cents for line in lines)


def quantities(lines) -> dict[int, int]:
    """item_id -> quantity, summed across lines."""
    totals: dict[int, int] = {}
    for line in lines:
        totals[line.item_id] = totals.get(line.item_id, 0) + line.quantity
    return totals


def resolve_paid(requested: int | None, total: int, *, default: int = 0) -> Result[int]:
    """paid = min(requested, total). `default` stands in when nothing was requested."""
    if requested is None:
        requested = default
    if requested < 0:
        return Err(ErrorKind.VALIDATION, "paid_amount_cents must be a non-negative amount", paid_amount_cents=requested)
    return Ok(min(requested, total))


def payment_type_for(credit_cents: int) -> str:
    return CREDIT if credit_cents > 0 else CASH
