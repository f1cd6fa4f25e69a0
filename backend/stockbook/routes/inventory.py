# Overview: Flask API routes for items, stock adjustments and quantity overrides.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..responses import internal_error, respond, validation_failed
from ..services import inventory_service
from ..validation import (
    ValidationError,
    amount_cents,
    coerce_int,
    json_object,
    optional_text,
    positive_quantity,
    require_choice,
    require_id,
    require_text,
)


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api")


@inventory_bp.post("/items")
@require_auth
@require_permission("create_items")
def create_item_route():
    """Body: {name, sku?, quantity?, cost_price_cents?, selling_price_cents?}"""
    try:
        data = json_object(request.get_json(silent=True))
        result = inventory_service.create_item(
            g.principal,
            name=require_text(data.get("name"), "name"),
            sku=optional_text(data.get("sku"), "sku", max_length=64),
            quantity=coerce_int(data.get("quantity", 0), "quantity"),
            cost_price_cents=amount_cents(data.get("cost_price_cents", 0), "cost_price_cents"),
            selling_price_cents=amount_cents(data.get("selling_price_cents", 0), "selling_price_cents"),
        )
        return respond(result, status=201, key="item")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to create item")
        return internal_error()


@inventory_bp.get("/items")
@require_auth
@require_permission("view_items")
def list_items_route():
    return respond(inventory_service.list_items(g.principal), key="items")


@inventory_bp.get("/items/<int:item_id>")
@require_auth
@require_permission("view_items")
def get_item_route(item_id: int):
    return respond(inventory_service.get_item(g.principal, item_id), key="item")


@inventory_bp.post("/items/<int:item_id>/adjust")
@require_auth
@require_permission("update_items")
def override_quantity_route(item_id: int):
    """
    Administrative quantity override.

    Body: {type: ADD|REMOVE|SET, quantity, reason?}
    """
    try:
        data = json_object(request.get_json(silent=True))
        result = inventory_service.override_quantity(
            g.principal,
            item_id=item_id,
            mode=require_choice(data.get("type"), "type", inventory_service.OVERRIDE_MODES),
            quantity=coerce_int(data.get("quantity"), "quantity"),
            reason=optional_text(data.get("reason"), "reason", max_length=1000),
        )
        return respond(result, key="override")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to override item quantity")
        return internal_error()


@inventory_bp.post("/items/adjust-bulk")
@require_auth
@require_permission("update_items")
def bulk_override_quantities_route():
    """
    Quantity overrides addressed by item name.

    Body: {adjustments: [{name, type: ADD|REMOVE|SET, quantity, reason?}, ...]}
    Returns {updated, skipped, errors}; bad rows are reported, not fatal.
    """
    try:
        data = json_object(request.get_json(silent=True))
        result = inventory_service.bulk_override_quantities(g.principal, data.get("adjustments"))
        return respond(result)
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to apply bulk quantity overrides")
        return internal_error()


@inventory_bp.post("/adjustments")
@require_auth
@require_permission("adjust_stock")
def create_stock_adjustment_route():
    """
    Record a reasoned stock movement.

    Body: {item_id, type: INCREASE|DECREASE, quantity, reason}
    """
    try:
        data = json_object(request.get_json(silent=True))
        result = inventory_service.create_stock_adjustment(
            g.principal,
            item_id=require_id(data, "item_id"),
            adjustment_type=require_choice(data.get("type"), "type", inventory_service.ADJUSTMENT_TYPES),
            quantity=positive_quantity(data.get("quantity")),
            reason=require_text(data.get("reason"), "reason", max_length=1000),
        )
        return respond(result, status=201, key="adjustment")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to create stock adjustment")
        return internal_error()
