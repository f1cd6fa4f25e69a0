# Overview: Flask API routes for sales; parses input and returns JSON responses.

"""Sales API routes with permission enforcement"""

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..responses import internal_error, respond, validation_failed
from ..services import sales_service
from ..validation import ValidationError, json_object, optional_amount_cents, optional_id, parse_lines


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_sale_payload() -> dict:
    data = json_object(request.get_json(silent=True))
    return {
        "lines": parse_lines(data.get("items")),
        "customer_id": optional_id(data, "customer_id"),
        "paid_amount_cents": optional_amount_cents(data, "paid_amount_cents"),
    }


@sales_bp.post("")
@require_auth
@require_permission("create_sale")
def create_sale_route():
    """
    Create a committed sale.

    Body: {items: [{item_id, quantity, price_cents?}], customer_id?, paid_amount_cents?}
    Requires: create_sale
    """
    try:
        payload = _parse_sale_payload()
        result = sales_service.create_sale(g.principal, **payload)
        return respond(result, status=201, key="sale")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return internal_error()


@sales_bp.get("")
@require_auth
@require_permission("create_sale")
def list_sales_route():
    limit = request.args.get("limit", default=50, type=int)
    return respond(sales_service.list_sales(g.principal, limit=max(1, min(limit, 200))), key="sales")


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("create_sale")  # Can view sales if can create them
def get_sale_route(sale_id: int):
    return respond(sales_service.get_sale(g.principal, sale_id), key="sale")


@sales_bp.put("/<int:sale_id>")
@require_auth
@require_permission("void_sales")
def edit_sale_route(sale_id: int):
    """
    Replace a sale's lines, customer and payment.

    Requires: void_sales (owner only)
    """
    try:
        payload = _parse_sale_payload()
        result = sales_service.edit_sale(g.principal, sale_id, **payload)
        return respond(result, key="sale")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to edit sale")
        return internal_error()


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_permission("void_sales")
def void_sale_route(sale_id: int):
    """
    Void a sale: restore stock, reverse credit, delete it.

    Requires: void_sales (owner only)
    """
    try:
        return respond(sales_service.void_sale(g.principal, sale_id), key="voided_sale")
    except Exception:
        current_app.logger.exception("Failed to void sale")
        return internal_error()
