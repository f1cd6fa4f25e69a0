# Overview: Flask API routes for quotations; parses input and returns JSON responses.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..responses import internal_error, respond, validation_failed
from ..services import quotation_service
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


quotations_bp = Blueprint("quotations", __name__, url_prefix="/api/quotations")


@quotations_bp.post("")
@require_auth
@require_permission("create_quotation")
def create_quotation_route():
    """
    Create a quotation. No stock or balance moves until it is converted.

    Body: {items: [{item_id, quantity, price_cents?}], customer_id?, note?, valid_until?}
    """
    try:
        data = json_object(request.get_json(silent=True))
        result = quotation_service.create_quotation(
            g.principal,
            lines=parse_lines(data.get("items")),
            customer_id=optional_id(data, "customer_id"),
            note=optional_text(data.get("note"), "note", max_length=1000),
            valid_until=optional_datetime(data.get("valid_until"), "valid_until"),
        )
        return respond(result, status=201, key="quotation")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to create quotation")
        return internal_error()


@quotations_bp.get("")
@require_auth
@require_permission("view_quotations")
def list_quotations_route():
    status = request.args.get("status")
    limit = request.args.get("limit", default=50, type=int)
    result = quotation_service.list_quotations(
        g.principal,
        status=status.strip().upper() if status else None,
        limit=max(1, min(limit, 200)),
    )
    return respond(result, key="quotations")


@quotations_bp.get("/<int:quotation_id>")
@require_auth
@require_permission("view_quotations")
def get_quotation_route(quotation_id: int):
    return respond(quotation_service.get_quotation(g.principal, quotation_id), key="quotation")


@quotations_bp.patch("/<int:quotation_id>")
@require_auth
@require_permission("create_quotation")
def update_quotation_route(quotation_id: int):
    """
    Edit an unconverted quotation.

    Body: {status?, note?, valid_until?}  (keys left out are unchanged; null clears note/valid_until)
    """
    try:
        data = json_object(request.get_json(silent=True))
        changes = {}
        if "status" in data:
            changes["status"] = require_text(data["status"], "status").upper()
        if "note" in data:
            changes["note"] = optional_text(data["note"], "note", max_length=1000)
        if "valid_until" in data:
            changes["valid_until"] = optional_datetime(data["valid_until"], "valid_until")
        result = quotation_service.update_quotation(g.principal, quotation_id, **changes)
        return respond(result, key="quotation")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to update quotation")
        return internal_error()


@quotations_bp.delete("/<int:quotation_id>")
@require_auth
@require_permission("delete_quotation")
def delete_quotation_route(quotation_id: int):
    try:
        return respond(quotation_service.delete_quotation(g.principal, quotation_id), key="deleted_quotation")
    except Exception:
        current_app.logger.exception("Failed to delete quotation")
        return internal_error()


@quotations_bp.post("/<int:quotation_id>/convert")
@require_auth
@require_permission("create_sale")
def convert_quotation_route(quotation_id: int):
    """
    Convert a quotation into a committed sale. A quotation converts once;
    a second attempt is a 409.

    Body: {paid_amount_cents?}  (defaults to the full total)
    """
    try:
        data = json_object(request.get_json(silent=True))
        result = quotation_service.convert_quotation(
            g.principal,
            quotation_id,
            paid_amount_cents=optional_amount_cents(data, "paid_amount_cents"),
        )
        return respond(result, status=201)
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to convert quotation")
        return internal_error()
