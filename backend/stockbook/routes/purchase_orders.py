# Overview: Flask API routes for purchase orders; parses input and returns JSON responses.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..responses import internal_error, respond, validation_failed
from ..services import purchase_order_service
from ..validation import (
    ValidationError,
    json_object,
    optional_amount_cents,
    optional_datetime,
    optional_id,
    optional_text,
    parse_lines,
    require_text,
)


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")


@purchase_orders_bp.post("")
@require_auth
@require_permission("create_purchase_order")
def create_purchase_order_route():
    """
    Body: {items: [{item_id, quantity, cost_price_cents?}], supplier_id?, note?, expected_at?}
    """
    try:
        data = json_object(request.get_json(silent=True))
        result = purchase_order_service.create_purchase_order(
            g.principal,
            lines=parse_lines(data.get("items"), price_field="cost_price_cents"),
            supplier_id=optional_id(data, "supplier_id"),
            note=optional_text(data.get("note"), "note", max_length=1000),
            expected_at=optional_datetime(data.get("expected_at"), "expected_at"),
        )
        return respond(result, status=201, key="purchase_order")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return internal_error()


@purchase_orders_bp.get("")
@require_auth
@require_permission("view_purchase_orders")
def list_purchase_orders_route():
    limit = request.args.get("limit", default=50, type=int)
    result = purchase_order_service.list_purchase_orders(g.principal, limit=max(1, min(limit, 200)))
    return respond(result, key="purchase_orders")


@purchase_orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("view_purchase_orders")
def get_purchase_order_route(order_id: int):
    return respond(purchase_order_service.get_purchase_order(g.principal, order_id), key="purchase_order")


@purchase_orders_bp.patch("/<int:order_id>")
@require_auth
@require_permission("create_purchase_order")
def update_purchase_order_route(order_id: int):
    """
    Edit a DRAFT or SENT purchase order.

    Body: {status?, note?, expected_at?}  (keys left out are unchanged; null clears note/expected_at)
    RECEIVED cannot be set here; it is reached by converting the order.
    """
    try:
        data = json_object(request.get_json(silent=True))
        changes = {}
        if "status" in data:
            changes["status"] = require_text(data["status"], "status").upper()
        if "note" in data:
            changes["note"] = optional_text(data["note"], "note", max_length=1000)
        if "expected_at" in data:
            changes["expected_at"] = optional_datetime(data["expected_at"], "expected_at")
        result = purchase_order_service.update_purchase_order(g.principal, order_id, **changes)
        return respond(result, key="purchase_order")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to update purchase order")
        return internal_error()


@purchase_orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("delete_purchase_order")
def delete_purchase_order_route(order_id: int):
    try:
        result = purchase_order_service.delete_purchase_order(g.principal, order_id)
        return respond(result, key="deleted_purchase_order")
    except Exception:
        current_app.logger.exception("Failed to delete purchase order")
        return internal_error()


@purchase_orders_bp.post("/<int:order_id>/convert")
@require_auth
@require_permission("create_purchase")
def convert_purchase_order_route(order_id: int):
    """
    Receive a purchase order as a committed purchase.

    Body: {paid_amount_cents?}  (defaults to 0; must not exceed the total)
    """
    try:
        data = json_object(request.get_json(silent=True))
        result = purchase_order_service.convert_purchase_order(
            g.principal,
            order_id,
            paid_amount_cents=optional_amount_cents(data, "paid_amount_cents"),
        )
        return respond(result, status=201)
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to convert purchase order")
        return internal_error()
