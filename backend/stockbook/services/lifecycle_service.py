# Overview: State tables and transition rules for draft documents (quotations, purchase orders).

"""
Draft Document Lifecycle

================================================================================
PURPOSE: Decide which status changes, conversions and deletions a draft allows
================================================================================

Drafts never move stock or balances. Only conversion into a Sale/Purchase
does, and a draft converts at most once.

QUOTATION:
    DRAFT, SENT, ACCEPTED, REJECTED, EXPIRED  (status updates move freely)

    convert: allowed from any status except REJECTED/EXPIRED, once.
             Forces status to ACCEPTED and stamps converted_at.
    After conversion the quotation is a historical record: no status
    change, no delete.

PURCHASE ORDER:
    DRAFT -> SENT -> RECEIVED (conversion only)
          \\-> CANCELLED

    RECEIVED and CANCELLED are terminal.
    convert: needs a bound supplier and a non-terminal status.
    delete:  DRAFT only.

These checks read the document as loaded. The services repeat the
status condition in the WHERE clause of the write itself; zero rows
affected there is what actually decides a race.
================================================================================
"""

from __future__ import annotations

from ..results import ErrorKind, Err, Ok, Result

QUOTATION_STATUSES = ("DRAFT", "SENT", "ACCEPTED", "REJECTED", "EXPIRED")
QUOTATION_BLOCKS_CONVERSION = frozenset({"REJECTED", "EXPIRED"})
QUOTATION_CONVERTED_STATUS = "ACCEPTED"

PURCHASE_ORDER_STATUSES = ("DRAFT", "SENT", "RECEIVED", "CANCELLED")
PURCHASE_ORDER_TERMINAL = frozenset({"RECEIVED", "CANCELLED"})
PURCHASE_ORDER_SETTABLE = ("DRAFT", "SENT", "CANCELLED")
PURCHASE_ORDER_RECEIVED_STATUS = "RECEIVED"


def _converted(quotation) -> Result:
    return Err(
        ErrorKind.CONFLICT,
        "Quotation has already been converted to a sale",
        quotation_id=quotation.id,
        converted_sale_id=quotation.converted_sale_id,
    )


def quotation_status_change(quotation, new_status: str) -> Result:
    if new_status not in QUOTATION_STATUSES:
        return Err(
            ErrorKind.VALIDATION,
            f"status must be one of: {', '.join(QUOTATION_STATUSES)}",
            status=new_status,
        )
    if quotation.converted_at is not None:
        return _converted(quotation)
    return Ok()


def quotation_can_convert(quotation) -> Result:
    if quotation.converted_at is not None:
        return _converted(quotation)
    if quotation.status in QUOTATION_BLOCKS_CONVERSION:
        return Err(
            ErrorKind.CONFLICT,
            f"Cannot convert a {quotation.status.lower()} quotation",
            quotation_id=quotation.id,
            status=quotation.status,
        )
    return Ok()


def quotation_can_edit(quotation) -> Result:
    """Note and valid_until stay editable until conversion."""
    if quotation.converted_at is not None:
        return _converted(quotation)
    return Ok()


def quotation_can_delete(quotation) -> Result:
    if quotation.converted_at is not None:
        return _converted(quotation)
    return Ok()


def purchase_order_status_change(order, new_status: str) -> Result:
    if new_status == PURCHASE_ORDER_RECEIVED_STATUS:
        return Err(
            ErrorKind.VALIDATION,
            "An order becomes RECEIVED only by receiving it into a purchase",
            status=new_status,
        )
    if new_status not in PURCHASE_ORDER_SETTABLE:
        return Err(
            ErrorKind.VALIDATION,
            f"status must be one of: {', '.join(PURCHASE_ORDER_SETTABLE)}",
            status=new_status,
        )
    if order.status in PURCHASE_ORDER_TERMINAL:
        return Err(
            ErrorKind.CONFLICT,
            f"Purchase order is already {order.status.lower()}",
            purchase_order_id=order.id,
            status=order.status,
        )
    return Ok()


def purchase_order_can_edit(order) -> Result:
    if order.status in PURCHASE_ORDER_TERMINAL:
        return Err(
            ErrorKind.CONFLICT,
            f"Purchase order is already {order.status.lower()}",
            purchase_order_id=order.id,
            status=order.status,
        )
    return Ok()


def purchase_order_can_convert(order) -> Result:
    if order.status in PURCHASE_ORDER_TERMINAL:
        return Err(
            ErrorKind.CONFLICT,
            f"Cannot receive a purchase order that is already {order.status.lower()}",
            purchase_order_id=order.id,
            status=order.status,
        )
    if order.supplier_id is None:
        return Err(
            ErrorKind.VALIDATION,
            "Purchase order must have a supplier before it can be received",
            purchase_order_id=order.id,
        )
    return Ok()


def purchase_order_can_delete(order) -> Result:
    if order.status != "DRAFT":
        return Err(
            ErrorKind.CONFLICT,
            "Only DRAFT purchase orders can be deleted",
            purchase_order_id=order.id,
            status=order.status,
        )
    return Ok()
