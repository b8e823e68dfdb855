# Overview: Tagged result values returned by every engine operation.

"""
Engine results.

Engine operations never raise for expected business conditions (missing rows,
bad state, short stock). They return either ``Ok(value)`` or
``Err(DomainError)``, and the caller branches on ``result.ok``. Exceptions are
left for infrastructure failures (database down after retries, programming
errors).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    EMPTY_ORDER = "EmptyOrder"
    PRODUCT_NOT_FOUND = "ProductNotFound"
    INVENTORY_NOT_FOUND = "InventoryNotFound"
    INSUFFICIENT_STOCK = "InsufficientStock"
    ORDER_NOT_FOUND = "OrderNotFound"
    INVALID_ORDER_STATE = "InvalidOrderState"
    DUPLICATE_TICKET = "DuplicateTicket"
    TICKET_NOT_FOUND = "TicketNotFound"
    PAYMENT_REQUIRED = "PaymentRequired"
    INVALID_TIME_RANGE = "InvalidTimeRange"
    UNALIGNED_TIME_SLOT = "UnalignedTimeSlot"
    OVERLAPPING_SLOT = "OverlappingSlot"
    PAST_TIME_SLOT = "PastTimeSlot"
    SLOT_HAS_ACTIVE_INVENTORY = "SlotHasActiveInventory"
    INVALID_QUANTITY = "InvalidQuantity"
    SLOT_NOT_FOUND = "SlotNotFound"
    PRODUCT_HAS_ACTIVE_INVENTORY = "ProductHasActiveInventory"
    INVALID_PAYMENT_METHOD = "InvalidPaymentMethod"


@dataclass(frozen=True)
class DomainError:
    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "kind": self.kind.value,
            "details": self.details,
        }


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err:
    error: DomainError
    ok: ClassVar[bool] = False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


Result = Union[Ok[T], Err]


def err(kind: ErrorKind, message: str, **details: Any) -> Err:
    """Shorthand for ``Err(DomainError(kind, message, details))``."""
    return Err(DomainError(kind=kind, message=message, details=details))
