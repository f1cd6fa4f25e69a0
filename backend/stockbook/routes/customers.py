# Overview: Flask API routes for customers, balance overrides and balance reminders.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..responses import internal_error, respond, validation_failed
from ..services import customer_service, notification_service
from ..validation import ValidationError, amount_cents, json_object, optional_text, require_id, require_text


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.post("")
@require_auth
@require_permission("create_customers")
def create_customer_route():
    try:
        data = json_object(request.get_json(silent=True))
        result = customer_service.create_customer(
            g.principal,
            name=require_text(data.get("name"), "name"),
            phone=optional_text(data.get("phone"), "phone", max_length=32),
            email=optional_text(data.get("email"), "email"),
        )
        return respond(result, status=201, key="customer")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return internal_error()


@customers_bp.get("")
@require_auth
@require_permission("view_customers")
def list_customers_route():
    return respond(customer_service.list_customers(g.principal), key="customers")


@customers_bp.get("/<int:customer_id>")
@require_auth
@require_permission("view_customers")
def get_customer_route(customer_id: int):
    return respond(customer_service.get_customer(g.principal, customer_id), key="customer")


@customers_bp.post("/adjust-balance")
@require_auth
@require_permission("adjust_balances")
def adjust_balance_route():
    """
    Set absolute customer balances.

    Body (single): {customer_id, balance_cents, reason?}
    Body (bulk):   {adjustments: [{customer_id, balance_cents, reason?}, ...]}

    Bulk always answers 200 with {updated, skipped, errors}; bad rows are
    reported per row and do not stop the others.
    """
    try:
        data = json_object(request.get_json(silent=True))
        if "adjustments" in data:
            result = customer_service.bulk_set_customer_balances(g.principal, data.get("adjustments"))
            return respond(result)

        result = customer_service.set_customer_balance(
            g.principal,
            customer_id=require_id(data, "customer_id"),
            balance_cents=amount_cents(data.get("balance_cents"), "balance_cents"),
            reason=optional_text(data.get("reason"), "reason", max_length=1000),
        )
        return respond(result)
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to adjust customer balance")
        return internal_error()


@customers_bp.post("/<int:customer_id>/reminder")
@require_auth
@require_permission("record_payments")
def balance_reminder_route(customer_id: int):
    """Send the customer an SMS with their outstanding balance."""
    try:
        result = notification_service.send_balance_reminder(g.principal, customer_id)
        return respond(result, key="notification")
    except Exception:
        current_app.logger.exception("Failed to send balance reminder")
        return internal_error()
