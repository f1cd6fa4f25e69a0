# Overview: Post-commit customer notifications (payment receipts, balance reminders).

"""
Notifications

WHY: An SMS is a courtesy on top of a committed fact. Notifiers are called
only after the ledger transaction has committed, and their outcome is
reported next to the committed result. A failed send is never a reason to
undo a payment.

Delivery goes through the notifier on app.extensions["stockbook.notifier"].
The default LoggingNotifier writes the message to the log.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import Customer, Tenant
from ..results import ErrorKind, Err, Ok, Result
from . import permission_service
from .tenant_service import get_scoped

logger = logging.getLogger(__name__)

EXTENSION_KEY = "stockbook.notifier"

SENT = "SENT"
SKIPPED = "SKIPPED"
FAILED = "FAILED"


@dataclass(frozen=True)
class NotificationOutcome:
    status: str
    channel: str = "sms"
    recipient: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "channel": self.channel,
            "recipient": self.recipient,
            "reason": self.reason,
        }


class LoggingNotifier:
    """Default notifier: records the message instead of delivering it."""

    def send_sms(self, to: str, message: str, sender_id: str | None = None) -> None:
        logger.info("SMS to %s (sender %s): %s", to, sender_id or "-", message)


def init_app(app) -> None:
    app.extensions.setdefault(EXTENSION_KEY, LoggingNotifier())


def get_notifier():
    return current_app.extensions.get(EXTENSION_KEY) or LoggingNotifier()


def normalise_phone(raw: str | None) -> str | None:
    """
    Normalise a local number to international form (233XXXXXXXXX).

    Accepts 0244123456, +233244123456, 233244123456 and 244123456.
    """
    if not raw:
        return None
    digits = re.sub(r"\D", "", raw)
    if digits.startswith("233") and len(digits) == 12:
        return digits
    if digits.startswith("0") and len(digits) == 10:
        return "233" + digits[1:]
    if len(digits) == 9:
        return "233" + digits
    return None


def format_money(cents: int) -> str:
    currency = current_app.config.get("CURRENCY_CODE", "GHS")
    return f"{currency} {cents // 100:,}.{cents % 100:02d}"


def build_payment_received_sms(business_name: str, customer_name: str, amount_cents: int, balance_cents: int) -> str:
    if balance_cents > 0:
        balance_line = f" Outstanding balance: {format_money(balance_cents)}."
    else:
        balance_line = " Your account is fully cleared."
    return (
        f"{business_name}: Dear {customer_name}, we received your payment of "
        f"{format_money(amount_cents)}.{balance_line} Thank you!"
    )


def build_balance_reminder_sms(business_name: str, customer_name: str, balance_cents: int) -> str:
    return (
        f"{business_name}: Dear {customer_name}, this is a friendly reminder that you have an "
        f"outstanding balance of {format_money(balance_cents)}. "
        f"Please settle at your earliest convenience. Thank you."
    )


def _deliver(tenant: Tenant, phone: str, message: str) -> NotificationOutcome:
    try:
        get_notifier().send_sms(phone, message, sender_id=tenant.sms_sender_id)
    except Exception as exc:
        logger.warning("SMS delivery to %s failed", phone, exc_info=True)
        return NotificationOutcome(status=FAILED, recipient=phone, reason=str(exc) or type(exc).__name__)
    return NotificationOutcome(status=SENT, recipient=phone)


def send_payment_receipt(tenant_id: int, customer_id: int, amount_cents: int) -> NotificationOutcome:
    """
    Receipt for a committed customer payment.

    Reads the customer's balance after the commit. Skipped when the tenant has
    notifications off or the customer has no usable phone. Never raises.
    """
    try:
        tenant = db.session.get(Tenant, tenant_id)
        customer = db.session.get(Customer, customer_id)
    except Exception:
        db.session.rollback()
        logger.warning("Could not load payment receipt context", exc_info=True)
        return NotificationOutcome(status=FAILED, reason="Could not load customer")

    if tenant is None or not tenant.enable_sms_notifications:
        return NotificationOutcome(status=SKIPPED, reason="SMS notifications are not enabled")
    if customer is None or customer.tenant_id != tenant_id:
        return NotificationOutcome(status=SKIPPED, reason="Customer not found")

    phone = normalise_phone(customer.phone)
    if phone is None:
        return NotificationOutcome(status=SKIPPED, reason="Customer has no valid phone number")

    message = build_payment_received_sms(tenant.name, customer.name, amount_cents, customer.balance_cents)
    return _deliver(tenant, phone, message)


def send_balance_reminder(principal, customer_id: int) -> Result[NotificationOutcome]:
    """
    Remind a customer of their outstanding balance.

    Preconditions are VALIDATION errors: the customer needs a phone and a
    positive balance, and the tenant must have SMS notifications enabled.
    A delivery failure is reported in the outcome, not as an error.
    """
    gate = permission_service.check(principal, "record_payments")
    if not gate.ok:
        return gate

    found = get_scoped(Customer, principal.tenant_id, customer_id)
    if not found.ok:
        return found
    customer = found.value

    phone = normalise_phone(customer.phone)
    if phone is None:
        return Err(ErrorKind.VALIDATION, "Customer has no valid phone number on file", customer_id=customer_id)
    if customer.balance_cents <= 0:
        return Err(
            ErrorKind.VALIDATION,
            "Customer has no outstanding balance",
            customer_id=customer_id,
            balance_cents=customer.balance_cents,
        )

    tenant = db.session.get(Tenant, principal.tenant_id)
    if tenant is None or not tenant.enable_sms_notifications:
        return Err(ErrorKind.VALIDATION, "SMS notifications are not enabled for this business")

    message = build_balance_reminder_sms(tenant.name, customer.name, customer.balance_cents)
    return Ok(_deliver(tenant, phone, message))
