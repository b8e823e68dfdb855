# Overview: Explicit construction of the engine services for one session.

"""
There is no process-wide service instance. Callers (routes, CLI commands,
tests) build a fresh Services bundle around the session they are using, with
every collaborator passed in explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from ..repositories import (
    InventoryRepository,
    OrderRepository,
    ProductRepository,
    SlotRepository,
    TicketRepository,
)
from ..time_utils import utcnow
from .inventory_service import InventoryLedger
from .order_service import OrderLifecycle
from .products_service import ProductCatalog
from .slot_service import SlotScheduler
from .ticket_service import TicketIssuance


@dataclass
class Services:
    products: ProductCatalog
    ledger: InventoryLedger
    slots: SlotScheduler
    orders: OrderLifecycle
    tickets: TicketIssuance


def build_services(session, config: Mapping[str, Any] | None = None, *, clock: Callable = utcnow) -> Services:
    config = config or {}
    retry_attempts = int(config.get("DB_RETRY_ATTEMPTS", 3))

    product_repo = ProductRepository(session)
    inventory_repo = InventoryRepository(session)
    slot_repo = SlotRepository(session)
    order_repo = OrderRepository(session)
    ticket_repo = TicketRepository(session)

    ledger = InventoryLedger(
        session,
        inventory_repo,
        product_repo,
        slot_repo,
        retry_attempts=retry_attempts,
    )
    tickets = TicketIssuance(
        session,
        ticket_repo,
        deferred_payment_methods=config.get("TICKET_DEFERRED_PAYMENT_METHODS", frozenset()),
        max_number_attempts=int(config.get("TICKET_NUMBER_MAX_ATTEMPTS", 5)),
        retry_attempts=retry_attempts,
    )
    slots = SlotScheduler(
        session,
        slot_repo,
        inventory_repo,
        clock=clock,
        alignment_minutes=int(config.get("SLOT_ALIGNMENT_MINUTES", 30)),
        lookahead_minutes=int(config.get("NEXT_SLOT_LOOKAHEAD_MINUTES", 30)),
        retry_attempts=retry_attempts,
    )
    orders = OrderLifecycle(
        session,
        order_repo,
        product_repo,
        inventory_repo,
        ledger,
        ticket_repo,
        tickets,
        clock=clock,
        retry_attempts=retry_attempts,
    )
    products = ProductCatalog(
        session,
        product_repo,
        inventory_repo,
        ledger,
        retry_attempts=retry_attempts,
    )

    return Services(products=products, ledger=ledger, slots=slots, orders=orders, tickets=tickets)
