# Overview: Ticket issuance; one payment/delivery record per confirmed order.

"""
Ticket Issuance

WHY: The ticket is what the customer shows at the counter. It records how the
order was paid and whether the goods were handed over.

DESIGN PRINCIPLES:
- Exactly one ticket per order (unique order_id)
- Ticket numbers are short human-facing codes: "T" + 6 time digits + 3 random
  digits. They are not assumed collision-free: a clash is detected before
  insert and a new number drawn, up to max_number_attempts times, and the
  unique constraint backs this up.
- A ticket starts paid unless its payment method is configured as deferred
  (settled after confirmation); update_payment_status corrects it later.
- Goods are only handed over for paid tickets.
"""

from __future__ import annotations

import logging
import secrets
import time

from ..models import OrderTicket
from ..results import ErrorKind, Ok, err
from .concurrency import begin_write, run_with_retry

logger = logging.getLogger(__name__)


# =============================================================================
# PAYMENT METHODS (CONSTANTS)
# =============================================================================

PAYMENT_CASH = "CASH"
PAYMENT_PAYPAY = "PAYPAY"

VALID_PAYMENT_METHODS = [
    PAYMENT_CASH,
    PAYMENT_PAYPAY,
]


def generate_ticket_number() -> str:
    timestamp = (time.time_ns() // 1_000_000) % 1_000_000
    suffix = secrets.randbelow(1000)
    return f"T{timestamp:06d}{suffix:03d}"


class TicketIssuance:
    def __init__(
        self,
        session,
        tickets,
        *,
        deferred_payment_methods=frozenset(),
        max_number_attempts: int = 5,
        number_generator=generate_ticket_number,
        retry_attempts: int = 3,
    ):
        self.session = session
        self.tickets = tickets
        self.deferred_payment_methods = frozenset(m.upper() for m in deferred_payment_methods)
        self.max_number_attempts = max_number_attempts
        self.number_generator = number_generator
        self.retry_attempts = retry_attempts

    def _not_found(self, ticket_id: int):
        return err(ErrorKind.TICKET_NOT_FOUND, f"Ticket with ID {ticket_id} not found", ticket_id=ticket_id)

    def is_paid_on_confirm(self, payment_method: str) -> bool:
        return payment_method not in self.deferred_payment_methods

    def _allocate_number(self, requested: str | None):
        if requested is not None:
            if self.tickets.number_exists(requested):
                return err(
                    ErrorKind.DUPLICATE_TICKET,
                    f"Ticket number {requested} is already in use",
                    ticket_number=requested,
                )
            return Ok(requested)

        for attempt in range(1, self.max_number_attempts + 1):
            candidate = self.number_generator()
            if not self.tickets.number_exists(candidate):
                return Ok(candidate)
            logger.warning("Ticket number collision on %s (attempt %d)", candidate, attempt)

        return err(
            ErrorKind.DUPLICATE_TICKET,
            f"Could not allocate a unique ticket number after {self.max_number_attempts} attempts",
        )

    # ------------------------------------------------------------------
    # Issuance (runs inside the order lifecycle's transaction)
    # ------------------------------------------------------------------

    def issue(self, order, payment_method: str, *, ticket_number: str | None = None, transaction_ref: str | None = None):
        """
        Create the ticket for a freshly confirmed order. Never commits.
        """
        if payment_method not in VALID_PAYMENT_METHODS:
            return err(
                ErrorKind.INVALID_PAYMENT_METHOD,
                f"Invalid payment method: {payment_method}. Must be one of {VALID_PAYMENT_METHODS}",
                payment_method=payment_method,
            )

        if self.tickets.get_by_order(order.id) is not None:
            return err(ErrorKind.DUPLICATE_TICKET, f"Ticket already exists for order {order.id}", order_id=order.id)

        number = self._allocate_number(ticket_number)
        if not number.ok:
            return number

        ticket = self.tickets.add(OrderTicket(
            order_id=order.id,
            ticket_number=number.value,
            payment_method=payment_method,
            transaction_ref=transaction_ref,
            is_paid=self.is_paid_on_confirm(payment_method),
            is_delivered=False,
        ))
        return Ok(ticket)

    # ------------------------------------------------------------------
    # Flag updates
    # ------------------------------------------------------------------

    def update_payment_status(self, ticket_id: int, is_paid: bool):
        def _op():
            begin_write(self.session)
            ticket = self.tickets.get_for_update(ticket_id)
            if ticket is None:
                self.session.rollback()
                return self._not_found(ticket_id)

            ticket.is_paid = bool(is_paid)
            self.session.commit()
            logger.info("Ticket %s payment status set to %s", ticket.ticket_number, ticket.is_paid)
            return Ok(ticket)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def update_delivery_status(self, ticket_id: int, is_delivered: bool):
        def _op():
            begin_write(self.session)
            ticket = self.tickets.get_for_update(ticket_id)
            if ticket is None:
                self.session.rollback()
                return self._not_found(ticket_id)

            if is_delivered and not ticket.is_paid:
                self.session.rollback()
                return err(
                    ErrorKind.PAYMENT_REQUIRED,
                    f"Order is not paid yet for ticket {ticket_id}",
                    ticket_id=ticket_id,
                )

            ticket.is_delivered = bool(is_delivered)
            self.session.commit()
            return Ok(ticket)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def mark_delivered(self, ticket_id: int):
        """Hand the goods over; only paid tickets qualify."""
        return self.update_delivery_status(ticket_id, True)

    def delete_ticket(self, ticket_id: int):
        """Remove a ticket record. The order it points to is left as is."""
        def _op():
            begin_write(self.session)
            ticket = self.tickets.get(ticket_id)
            if ticket is None:
                self.session.rollback()
                return self._not_found(ticket_id)

            self.tickets.delete(ticket)
            self.session.commit()
            return Ok(True)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_ticket(self, ticket_id: int):
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return self._not_found(ticket_id)
        return Ok(ticket)

    def get_by_number(self, ticket_number: str):
        ticket = self.tickets.get_by_number(ticket_number)
        if ticket is None:
            return err(ErrorKind.TICKET_NOT_FOUND, f"Ticket {ticket_number} not found", ticket_number=ticket_number)
        return Ok(ticket)

    def get_by_order(self, order_id: int):
        ticket = self.tickets.get_by_order(order_id)
        if ticket is None:
            return err(ErrorKind.TICKET_NOT_FOUND, f"No ticket for order {order_id}", order_id=order_id)
        return Ok(ticket)

    def list_tickets(self, *, is_paid: bool | None = None, is_delivered: bool | None = None) -> list[OrderTicket]:
        return self.tickets.find_all(is_paid=is_paid, is_delivered=is_delivered)
