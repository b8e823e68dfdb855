# Overview: Order lifecycle; reservations, confirmation into tickets, cancellation.

"""
Order Lifecycle

WHY: An order is a bundle of stock reservations in one sales slot. It is the
only component allowed to touch several inventory rows in one logical
operation, so it owns the transaction around them.

STATE MACHINE:
    RESERVED --confirm--> CONFIRMED   (reserved -> sold, ticket issued)
    RESERVED --cancel-->  CANCELED    (reserved -> available)
CONFIRMED and CANCELED are terminal.

TRANSACTIONS:
- create_reservation, confirm_order and cancel_reservation each run in a
  single database transaction: all row updates, the status flip and the ticket
  commit together or not at all. A failure rolls the session back, which
  undoes partial reservations and reverts the status.
- Inventory rows are locked in ascending id order (no deadlock between two
  multi-row operations).
- Status changes are compare-and-set on the stored status, so of two racing
  confirm/cancel calls exactly one wins.
- Optimistic-lock and lock-timeout failures are retried a bounded number of
  times (run_with_retry); business failures are returned, never retried.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..models.orders import (
    ORDER_STATUS_CANCELED,
    ORDER_STATUS_CONFIRMED,
    ORDER_STATUS_RESERVED,
)
from ..results import ErrorKind, Ok, Result, err
from ..time_utils import utcnow
from .concurrency import begin_write, run_with_retry

logger = logging.getLogger(__name__)


class OrderLifecycle:
    def __init__(
        self,
        session,
        orders,
        products,
        inventory,
        ledger,
        tickets,
        ticket_issuance,
        *,
        clock=utcnow,
        retry_attempts: int = 3,
    ):
        self.session = session
        self.orders = orders
        self.products = products
        self.inventory = inventory
        self.ledger = ledger
        self.tickets = tickets
        self.ticket_issuance = ticket_issuance
        self.clock = clock
        self.retry_attempts = retry_attempts

    def _not_found(self, order_id: int):
        return err(ErrorKind.ORDER_NOT_FOUND, f"Order with ID {order_id} not found", order_id=order_id)

    def _wrong_state(self, order_id: int, status: str):
        return err(
            ErrorKind.INVALID_ORDER_STATE,
            f"Order with ID {order_id} is not in RESERVED status",
            order_id=order_id,
            status=status,
        )

    def _fail(self, result):
        self.session.rollback()
        return result

    def _lock_order_rows(self, order):
        """Lock the inventory rows behind an order's items; InventoryNotFound if one vanished."""
        row_ids = []
        rows_by_product = {}
        for item in order.items:
            row = self.inventory.get(item.product_id, order.sales_slot_id)
            if row is None:
                return err(
                    ErrorKind.INVENTORY_NOT_FOUND,
                    f"Inventory not found for product {item.product_id} in sales slot {order.sales_slot_id}",
                    product_id=item.product_id,
                    sales_slot_id=order.sales_slot_id,
                )
            row_ids.append(row.id)
            rows_by_product[item.product_id] = row.id

        locked = self.inventory.lock_rows(row_ids)
        return Ok({product_id: locked[row_id] for product_id, row_id in rows_by_product.items()})

    # ------------------------------------------------------------------
    # Reservation
    # ------------------------------------------------------------------

    def create_reservation(self, sales_slot_id: int, items: list[dict]) -> Result:
        """
        Reserve stock for every item and record a RESERVED order.

        items: [{"product_id": int, "quantity": int}, ...]

        Every item is validated before any stock moves. Quantities of a
        product listed more than once are summed for the availability check.
        """
        if not items:
            return err(ErrorKind.EMPTY_ORDER, "Order must contain at least one item")

        def _op():
            begin_write(self.session)

            resolved = []
            for item in items:
                product_id = item.get("product_id")
                quantity = item.get("quantity")

                if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                    return self._fail(err(
                        ErrorKind.INVALID_QUANTITY,
                        "Quantity must be a positive integer",
                        product_id=product_id,
                        quantity=quantity,
                    ))

                product = self.products.get(product_id) if isinstance(product_id, int) else None
                if product is None:
                    return self._fail(err(
                        ErrorKind.PRODUCT_NOT_FOUND,
                        f"Product with ID {product_id} not found",
                        product_id=product_id,
                    ))

                row = self.inventory.get(product_id, sales_slot_id)
                if row is None:
                    return self._fail(err(
                        ErrorKind.INVENTORY_NOT_FOUND,
                        f"Inventory not found for product {product_id} in sales slot {sales_slot_id}",
                        product_id=product_id,
                        sales_slot_id=sales_slot_id,
                    ))

                resolved.append((product, row.id, quantity))

            locked = self.inventory.lock_rows(row_id for _, row_id, _ in resolved)

            requested: dict[int, int] = {}
            for _, row_id, quantity in resolved:
                requested[row_id] = requested.get(row_id, 0) + quantity

            for product, row_id, _ in resolved:
                row = locked[row_id]
                wanted = requested[row_id]
                if wanted > row.available_quantity:
                    return self._fail(err(
                        ErrorKind.INSUFFICIENT_STOCK,
                        f"Not enough inventory for product {product.name}. "
                        f"Available: {row.available_quantity}, Requested: {wanted}",
                        product_id=product.id,
                        product_name=product.name,
                        available=row.available_quantity,
                        requested=wanted,
                        shortfall=wanted - row.available_quantity,
                    ))

            order_items = []
            total = 0
            for product, row_id, quantity in resolved:
                reserved = self.ledger.reserve(locked[row_id], quantity)
                if not reserved.ok:
                    return self._fail(reserved)
                line_total = product.price_cents * quantity
                order_items.append({
                    "product_id": product.id,
                    "quantity": quantity,
                    "unit_price_cents": product.price_cents,
                    "line_total_cents": line_total,
                })
                total += line_total

            order = self.orders.create(
                sales_slot_id=sales_slot_id,
                status=ORDER_STATUS_RESERVED,
                items=order_items,
                total_amount_cents=total,
            )
            self.session.commit()
            logger.info("Order %s reserved in slot %s (total=%s)", order.id, sales_slot_id, total)
            return Ok(order)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def confirm_order(
        self,
        order_id: int,
        payment_method: str,
        ticket_number: str | None = None,
        transaction_ref: str | None = None,
    ) -> Result:
        """
        RESERVED -> CONFIRMED: convert reserved stock to sold and issue the ticket.

        Returns the new OrderTicket.
        """
        def _op():
            begin_write(self.session)

            order = self.orders.get(order_id)
            if order is None:
                return self._fail(self._not_found(order_id))
            if order.status != ORDER_STATUS_RESERVED:
                return self._fail(self._wrong_state(order_id, order.status))
            if self.tickets.get_by_order(order_id) is not None:
                return self._fail(err(
                    ErrorKind.DUPLICATE_TICKET,
                    f"Ticket already exists for order {order_id}",
                    order_id=order_id,
                ))

            if not self.orders.compare_and_set_status(
                order_id,
                expected=ORDER_STATUS_RESERVED,
                new=ORDER_STATUS_CONFIRMED,
                confirmed_at=self.clock(),
            ):
                current = self.orders.get(order_id)
                return self._fail(self._wrong_state(order_id, current.status if current else None))

            rows = self._lock_order_rows(order)
            if not rows.ok:
                return self._fail(rows)

            for item in order.items:
                converted = self.ledger.convert_to_sold(rows.value[item.product_id], item.quantity)
                if not converted.ok:
                    return self._fail(converted)

            try:
                ticket = self.ticket_issuance.issue(
                    order,
                    payment_method,
                    ticket_number=ticket_number,
                    transaction_ref=transaction_ref,
                )
                if not ticket.ok:
                    return self._fail(ticket)
                self.session.commit()
            except IntegrityError:
                # Lost a race on the ticket's unique constraints, at flush or commit.
                self.session.rollback()
                return err(
                    ErrorKind.DUPLICATE_TICKET,
                    f"Ticket already exists for order {order_id}",
                    order_id=order_id,
                )

            logger.info("Order %s confirmed with ticket %s", order_id, ticket.value.ticket_number)
            return ticket

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def cancel_reservation(self, order_id: int) -> Result:
        """RESERVED -> CANCELED: give the reserved stock back."""
        def _op():
            begin_write(self.session)

            order = self.orders.get(order_id)
            if order is None:
                return self._fail(self._not_found(order_id))
            if order.status != ORDER_STATUS_RESERVED:
                return self._fail(self._wrong_state(order_id, order.status))

            if not self.orders.compare_and_set_status(
                order_id,
                expected=ORDER_STATUS_RESERVED,
                new=ORDER_STATUS_CANCELED,
                canceled_at=self.clock(),
            ):
                current = self.orders.get(order_id)
                return self._fail(self._wrong_state(order_id, current.status if current else None))

            rows = self._lock_order_rows(order)
            if not rows.ok:
                return self._fail(rows)

            for item in order.items:
                released = self.ledger.release(rows.value[item.product_id], item.quantity)
                if not released.ok:
                    return self._fail(released)

            self.session.commit()
            logger.info("Order %s canceled", order_id)
            return Ok(order)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def mark_delivered(self, ticket_id: int):
        return self.ticket_issuance.mark_delivered(ticket_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: int):
        order = self.orders.get(order_id)
        if order is None:
            return self._not_found(order_id)
        return Ok(order)

    def list_orders(self, *, status: str | None = None, sales_slot_id: int | None = None):
        return self.orders.find_all(status=status, sales_slot_id=sales_slot_id)

    def get_order_by_ticket_number(self, ticket_number: str):
        ticket = self.tickets.get_by_number(ticket_number)
        if ticket is None:
            return err(ErrorKind.TICKET_NOT_FOUND, f"Ticket {ticket_number} not found", ticket_number=ticket_number)
        return self.get_order(ticket.order_id)
