# Overview: Customer records and the administrative balance override (single and bulk).

"""
Customer Service

Balances normally move only through sales (credit) and payments. The
override sets an absolute balance for cases the ledger cannot express
(opening balances, write-offs). It needs adjust_balances, is recorded as a
BalanceAdjustment with the previous value, and is audited as OVERRIDE.

Bulk overrides apply each row in its own unit of work: a bad row is
reported and skipped, it never blocks the others.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import BalanceAdjustment, Customer
from ..results import ErrorKind, Err, Ok, Result
from ..validation import MAX_AMOUNT_CENTS, ValidationError, amount_cents, optional_text, require_id
from . import audit_service, balance_ledger, permission_service
from .concurrency import run_in_transaction
from .tenant_service import get_scoped, list_scoped


@dataclass(frozen=True)
class BalanceOverride:
    customer: Customer
    previous_balance_cents: int

    def to_dict(self) -> dict:
        data = self.customer.to_dict()
        data["previous_balance_cents"] = self.previous_balance_cents
        return data


def create_customer(principal, *, name: str, phone: str | None = None, email: str | None = None) -> Result[Customer]:
    gate = permission_service.check(principal, "create_customers")
    if not gate.ok:
        return gate
    if not name or not name.strip():
        return Err(ErrorKind.VALIDATION, "name is required")

    def _op() -> Result[Customer]:
        customer = Customer(tenant_id=principal.tenant_id, name=name.strip(), phone=phone, email=email, balance_cents=0)
        db.session.add(customer)
        db.session.flush()
        return Ok(customer)

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "CREATE", "Customer", result.value.id)
    return result


def list_customers(principal) -> Result[list[Customer]]:
    gate = permission_service.check(principal, "view_customers")
    if not gate.ok:
        return gate
    return Ok(list_scoped(Customer, principal.tenant_id, order_by=Customer.name))


def get_customer(principal, customer_id: int) -> Result[Customer]:
    gate = permission_service.check(principal, "view_customers")
    if not gate.ok:
        return gate
    return get_scoped(Customer, principal.tenant_id, customer_id)


def _apply_override(principal, customer_id: int, balance_cents: int, reason: str | None) -> Result[BalanceOverride]:
    tenant_id = principal.tenant_id

    def _op() -> Result[BalanceOverride]:
        found = get_scoped(Customer, tenant_id, customer_id)
        if not found.ok:
            return found
        customer = found.value
        previous = customer.balance_cents

        balance_ledger.set_balance(Customer, tenant_id, customer_id, previous, balance_cents)
        db.session.add(BalanceAdjustment(
            tenant_id=tenant_id,
            customer_id=customer_id,
            previous_balance_cents=previous,
            new_balance_cents=balance_cents,
            reason=reason,
            created_by=principal.principal_id,
        ))
        db.session.flush()
        return Ok(BalanceOverride(customer=customer, previous_balance_cents=previous))

    result = run_in_transaction(_op)
    if result.ok:
        audit_service.record(principal, "OVERRIDE", "Customer", customer_id)
    return result


def set_customer_balance(
    principal,
    *,
    customer_id: int,
    balance_cents: int,
    reason: str | None = None,
) -> Result[BalanceOverride]:
    gate = permission_service.check(principal, "adjust_balances")
    if not gate.ok:
        return gate
    if balance_cents < 0 or balance_cents > MAX_AMOUNT_CENTS:
        return Err(ErrorKind.VALIDATION, "balance_cents must be a non-negative amount", balance_cents=balance_cents)
    return _apply_override(principal, customer_id, balance_cents, reason)


def bulk_set_customer_balances(principal, rows) -> Result[dict]:
    """
    Apply [{customer_id, balance_cents, reason?}, ...] row by row.

    Returns {"updated": n, "skipped": n, "errors": ["Row 3: ...", ...]} with
    1-based row numbers. Only an empty or oversized batch fails as a whole.
    """
    gate = permission_service.check(principal, "adjust_balances")
    if not gate.ok:
        return gate

    limit = current_app.config.get("BULK_BALANCE_LIMIT", 500)
    if not isinstance(rows, list) or not rows:
        return Err(ErrorKind.VALIDATION, "No adjustments provided")
    if len(rows) > limit:
        return Err(ErrorKind.VALIDATION, f"Maximum {limit} adjustments per request", count=len(rows))

    summary = {"updated": 0, "skipped": 0, "errors": []}
    for row_num, row in enumerate(rows, start=1):
        try:
            if not isinstance(row, dict):
                raise ValidationError("must be an object")
            customer_id = require_id(row, "customer_id")
            balance = amount_cents(row.get("balance_cents"), "balance_cents")
            reason = optional_text(row.get("reason"), "reason", max_length=1000)
        except ValidationError as exc:
            summary["errors"].append(f"Row {row_num}: {exc}")
            summary["skipped"] += 1
            continue

        applied = _apply_override(principal, customer_id, balance, reason)
        if applied.ok:
            summary["updated"] += 1
        else:
            summary["errors"].append(f"Row {row_num}: {applied.error.message}")
            summary["skipped"] += 1

    return Ok(summary)
