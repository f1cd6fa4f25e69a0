# Overview: Customer and supplier payments; one-way decrements of a party balance.

"""
Payment Service

A payment can never take a balance below zero:

    0 < amount_cents <= balance_cents

The decrement itself is conditional, so two payments racing for the same
balance cannot both pass. A customer payment may be followed by an SMS
receipt; that happens after the commit and its outcome rides along with the
payment.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import Customer, CustomerPayment, Supplier, SupplierPayment
from ..results import ErrorKind, Err, Ok, Result
from ..validation import MAX_AMOUNT_CENTS
from . import audit_service, balance_ledger, notification_service, permission_service
from .concurrency import run_in_transaction
from .notification_service import NotificationOutcome

PAYMENT_METHODS = ("CASH", "MOMO", "BANK")


@dataclass(frozen=True)
class RecordedPayment:
    payment: CustomerPayment | SupplierPayment
    notification: NotificationOutcome | None = None

    def to_dict(self) -> dict:
        return {
            "payment": self.payment.to_dict(),
            "notification": self.notification.to_dict() if self.notification else None,
        }


def _check_amount(amount_cents: int, method: str) -> Result:
    if amount_cents <= 0:
        return Err(ErrorKind.VALIDATION, "amount_cents must be a positive amount", amount_cents=amount_cents)
    if amount_cents > MAX_AMOUNT_CENTS:
        return Err(ErrorKind.VALIDATION, f"amount_cents cannot exceed {MAX_AMOUNT_CENTS}")
    if method not in PAYMENT_METHODS:
        return Err(ErrorKind.VALIDATION, f"method must be one of: {', '.join(PAYMENT_METHODS)}", method=method)
    return Ok()


def _record(principal, model, payment_model, party_field: str, party_id: int,
            amount_cents: int, method: str, note: str | None) -> Result:
    gate = permission_service.check(principal, "record_payments")
    if not gate.ok:
        return gate

    checked = _check_amount(amount_cents, method)
    if not checked.ok:
        return checked
    tenant_id = principal.tenant_id

    def _op() -> Result:
        party = balance_ledger.load_party(model, tenant_id, party_id)
        if not party.ok:
            return party
        enough = balance_ledger.check_can_decrease(party.value, amount_cents)
        if not enough.ok:
            return enough

        payment = payment_model(
            tenant_id=tenant_id,
            amount_cents=amount_cents,
            method=method,
            note=note,
            created_by=principal.principal_id,
            **{party_field: party_id},
        )
        db.session.add(payment)
        balance_ledger.decrement(model, tenant_id, party_id, amount_cents)
        db.session.flush()
        return Ok(payment)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", payment_model.__name__, result.value.id)
    return result


def record_customer_payment(
    principal,
    *,
    customer_id: int,
    amount_cents: int,
    method: str = "CASH",
    note: str | None = None,
) -> Result[RecordedPayment]:
    result = _record(principal, Customer, CustomerPayment, "customer_id", customer_id, amount_cents, method, note)
    if not result.ok:
        return result

    outcome = notification_service.send_payment_receipt(principal.tenant_id, customer_id, amount_cents)
    return Ok(RecordedPayment(payment=result.value, notification=outcome))


def record_supplier_payment(
    principal,
    *,
    supplier_id: int,
    amount_cents: int,
    method: str = "CASH",
    note: str | None = None,
) -> Result[RecordedPayment]:
    result = _record(principal, Supplier, SupplierPayment, "supplier_id", supplier_id, amount_cents, method, note)
    if not result.ok:
        return result
    return Ok(RecordedPayment(payment=result.value))
