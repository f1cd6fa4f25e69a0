# Overview: Balance ledger for customers (debt owed to us) and suppliers (what we owe).

"""
Balance Ledger

Customer.balance_cents and Supplier.balance_cents follow identical mechanics:
deltas only, never negative, every decrement a conditional UPDATE. The absolute
set_balance exists for the audited customer balance override alone.
"""

from __future__ import annotations

from sqlalchemy import select, update

from ..extensions import db
from ..results import ErrorKind, Err, Ok, Result
from .concurrency import LedgerConflict


def get_party(model, tenant_id: int, party_id: int):
    return db.session.execute(
        select(model).where(model.id == party_id, model.tenant_id == tenant_id)
    ).scalar_one_or_none()


def load_party(model, tenant_id: int, party_id: int) -> Result:
    party = get_party(model, tenant_id, party_id)
    if party is None:
        return Err(ErrorKind.NOT_FOUND, f"{model.__name__} not found", **{_id_field(model): party_id})
    return Ok(party)


def check_can_decrease(party, amount_cents: int) -> Result:
    if amount_cents > party.balance_cents:
        return Err(
            ErrorKind.INSUFFICIENT_BALANCE,
            f"Amount exceeds the current balance of {party.balance_cents}",
            **{_id_field(type(party)): party.id},
            balance_cents=party.balance_cents,
            requested_cents=amount_cents,
        )
    return Ok()


def _id_field(model) -> str:
    return f"{model.__name__.lower()}_id"


def _current_balance(model, tenant_id: int, party_id: int) -> int | None:
    return db.session.execute(
        select(model.balance_cents).where(model.id == party_id, model.tenant_id == tenant_id)
    ).scalar_one_or_none()


def increment(model, tenant_id: int, party_id: int, amount_cents: int) -> None:
    if amount_cents <= 0:
        raise ValueError("increment requires a positive amount")
    stmt = (
        update(model)
        .where(model.id == party_id, model.tenant_id == tenant_id)
        .values(balance_cents=model.balance_cents + amount_cents)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount == 0:
        raise LedgerConflict.of(
            ErrorKind.NOT_FOUND, f"{model.__name__} not found", **{_id_field(model): party_id}
        )


def decrement(model, tenant_id: int, party_id: int, amount_cents: int) -> None:
    if amount_cents <= 0:
        raise ValueError("decrement requires a positive amount")
    stmt = (
        update(model)
        .where(
            model.id == party_id,
            model.tenant_id == tenant_id,
            model.balance_cents >= amount_cents,
        )
        .values(balance_cents=model.balance_cents - amount_cents)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount == 0:
        balance = _current_balance(model, tenant_id, party_id)
        if balance is None:
            raise LedgerConflict.of(
                ErrorKind.NOT_FOUND, f"{model.__name__} not found", **{_id_field(model): party_id}
            )
        raise LedgerConflict.of(
            ErrorKind.INSUFFICIENT_BALANCE,
            f"Amount exceeds the current balance of {balance}",
            **{_id_field(model): party_id},
            balance_cents=balance,
            requested_cents=amount_cents,
        )


def set_balance(model, tenant_id: int, party_id: int, expected: int, new_balance: int) -> None:
    """Absolute override; guarded by the balance the caller read."""
    if new_balance < 0:
        raise ValueError("balance cannot be negative")
    stmt = (
        update(model)
        .where(
            model.id == party_id,
            model.tenant_id == tenant_id,
            model.balance_cents == expected,
        )
        .values(balance_cents=new_balance)
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount == 0:
        raise LedgerConflict.of(
            ErrorKind.CONFLICT,
            "Balance changed while the override was being applied",
            **{_id_field(model): party_id},
            expected_balance_cents=expected,
        )
