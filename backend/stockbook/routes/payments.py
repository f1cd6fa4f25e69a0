# Overview: Flask API routes for customer and supplier payments.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..responses import internal_error, respond, validation_failed
from ..services import payment_service
from ..validation import ValidationError, amount_cents, json_object, optional_text, require_choice, require_id


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _parse_payment(data: dict, party_field: str) -> dict:
    return {
        party_field: require_id(data, party_field),
        "amount_cents": amount_cents(data.get("amount_cents"), "amount_cents", allow_zero=False),
        "method": require_choice(data.get("method", "CASH"), "method", payment_service.PAYMENT_METHODS),
        "note": optional_text(data.get("note"), "note", max_length=1000),
    }


@payments_bp.post("/customers")
@require_auth
@require_permission("record_payments")
def record_customer_payment_route():
    """
    Record money received from a customer against their balance.

    Body: {customer_id, amount_cents, method?, note?}
    Paying more than the outstanding balance is a 409.
    """
    try:
        data = json_object(request.get_json(silent=True))
        result = payment_service.record_customer_payment(g.principal, **_parse_payment(data, "customer_id"))
        return respond(result, status=201)
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to record customer payment")
        return internal_error()


@payments_bp.post("/suppliers")
@require_auth
@require_permission("record_payments")
def record_supplier_payment_route():
    try:
        data = json_object(request.get_json(silent=True))
        result = payment_service.record_supplier_payment(g.principal, **_parse_payment(data, "supplier_id"))
        return respond(result, status=201)
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to record supplier payment")
        return internal_error()
