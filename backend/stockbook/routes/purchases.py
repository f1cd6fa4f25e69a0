# Overview: Flask API routes for purchases; parses input and returns JSON responses.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..responses import internal_error, respond, validation_failed
from ..services import purchase_service
from ..validation import ValidationError, json_object, optional_amount_cents, parse_lines, require_id


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


def _parse_purchase_payload() -> dict:
    data = json_object(request.get_json(silent=True))
    return {
        "supplier_id": require_id(data, "supplier_id"),
        "lines": parse_lines(data.get("items"), price_field="cost_price_cents"),
        "paid_amount_cents": optional_amount_cents(data, "paid_amount_cents"),
    }


@purchases_bp.post("")
@require_auth
@require_permission("create_purchase")
def create_purchase_route():
    """
    Record a purchase from a supplier.

    Body: {supplier_id, items: [{item_id, quantity, cost_price_cents?}], paid_amount_cents?}
    Requires: create_purchase
    """
    try:
        result = purchase_service.create_purchase(g.principal, **_parse_purchase_payload())
        return respond(result, status=201, key="purchase")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to create purchase")
        return internal_error()


@purchases_bp.get("")
@require_auth
@require_permission("create_purchase")
def list_purchases_route():
    limit = request.args.get("limit", default=50, type=int)
    return respond(purchase_service.list_purchases(g.principal, limit=max(1, min(limit, 200))), key="purchases")


@purchases_bp.get("/<int:purchase_id>")
@require_auth
@require_permission("create_purchase")
def get_purchase_route(purchase_id: int):
    return respond(purchase_service.get_purchase(g.principal, purchase_id), key="purchase")


@purchases_bp.put("/<int:purchase_id>")
@require_auth
@require_permission("void_purchases")
def edit_purchase_route(purchase_id: int):
    try:
        result = purchase_service.edit_purchase(g.principal, purchase_id, **_parse_purchase_payload())
        return respond(result, key="purchase")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to edit purchase")
        return internal_error()


@purchases_bp.delete("/<int:purchase_id>")
@require_auth
@require_permission("void_purchases")
def void_purchase_route(purchase_id: int):
    try:
        return respond(purchase_service.void_purchase(g.principal, purchase_id), key="voided_purchase")
    except Exception:
        current_app.logger.exception("Failed to void purchase")
        return internal_error()
