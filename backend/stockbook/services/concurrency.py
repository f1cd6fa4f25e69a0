# Overview: Unit-of-work runner; commits a service operation as one transaction or rolls it back.

from __future__ import annotations

import logging
import time
from typing import Callable

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..results import ErrorKind, Err, Result, ServiceError, from_error

logger = logging.getLogger(__name__)


class LedgerConflict(Exception):
    """
    Raised inside an open unit of work when a conditional write matched no row.

    WHY: A compare-and-swap that affects zero rows means a precondition that was
    true when validated is no longer true (concurrent sale, payment, conversion).
    Whatever was already written in this transaction must not survive, so the
    runner rolls back and hands the carried error to the caller as a Result.
    """

    def __init__(self, error: ServiceError):
        super().__init__(error.message)
        self.error = error

    @classmethod
    def of(cls, kind: ErrorKind, message: str, **details) -> "LedgerConflict":
        return cls(ServiceError(kind=kind, message=message, details=details))


def lock_for_update(query):
    """
    Apply row-level locking for critical reads.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Ledger writes do not depend on it: every decrement is conditional.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts on versioned headers).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(op: Callable[[], Result], *, attempts: int | None = None,
                       backoff_base: float | None = None) -> Result:
    """
    Run `op` as one atomic unit of work.

    `op` reads current state, validates, writes, and returns a Result:
    - Ok: the transaction is committed.
    - Err: nothing was meant to be written; the transaction is rolled back.
    - LedgerConflict raised mid-way: rolled back, returned as its Err.

    Lock timeouts and stale versions are retried with exponential backoff by
    re-running the whole op (reads included). When attempts run out the
    caller gets TRANSIENT and no partial ledger effect survives.
    """
    if attempts is None:
        attempts = current_app.config.get("TX_RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("TX_RETRY_BACKOFF", 0.1)

    def _op() -> Result:
        try:
            result = op()
        except LedgerConflict as conflict:
            db.session.rollback()
            return from_error(conflict.error)
        except (OperationalError, StaleDataError):
            raise
        except Exception:
            db.session.rollback()
            raise

        if not result.ok:
            db.session.rollback()
            return result

        try:
            db.session.commit()
        except (OperationalError, StaleDataError):
            raise
        except Exception:
            db.session.rollback()
            raise
        return result

    try:
        return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
    except (OperationalError, StaleDataError) as exc:
        logger.warning("Transaction failed after %s attempts: %s", attempts, exc)
        return Err(
            ErrorKind.TRANSIENT,
            "The database was busy; the operation was not applied. Retry.",
            attempts=attempts,
        )
