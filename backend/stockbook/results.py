# Overview: Typed service results; every ledger operation returns Ok(value) or Err(kind, ...).

"""
Service Result Types

WHY: Business rule violations (bad input, short stock, overpayment, terminal
documents, missing permission) are expected outcomes, not crashes. Services
return them as values so callers can branch on `result.ok` and surface the
structured `details` without try/except around every call.

Only technical failures (lock timeouts, serialization failures) start out as
exceptions, and the transaction runner turns those into TRANSIENT results.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    NO_TENANT = "NO_TENANT"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION"
    INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    CONFLICT = "CONFLICT"
    TRANSIENT = "TRANSIENT"


HTTP_STATUS = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NO_TENANT: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.VALIDATION: 400,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.INSUFFICIENT_BALANCE: 409,
    ErrorKind.CONFLICT: 409,
    ErrorKind.TRANSIENT: 503,
}


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self) -> dict:
        return {
            "error": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error else None

    def unwrap(self) -> T:
        """Return the value; only for callers that already checked `ok`."""
        if self.error is not None:
            raise RuntimeError(f"unwrap() on error result: {self.error.kind.value}")
        return self.value  # type: ignore[return-value]


def Ok(value: T = None) -> Result[T]:  # noqa: N802
    return Result(value=value)


def Err(kind: ErrorKind, message: str, **details: Any) -> Result:  # noqa: N802
    return Result(error=ServiceError(kind=kind, message=message, details=details))


def from_error(error: ServiceError) -> Result:
    return Result(error=error)
