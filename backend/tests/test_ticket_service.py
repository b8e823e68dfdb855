"""
Ticket issuance tests: payment defaults, hand-over rules and number allocation.
"""

import itertools
import re

import pytest

from conftest import NOW
from timeseats.models.orders import ORDER_STATUS_CONFIRMED, ORDER_STATUS_RESERVED
from timeseats.results import ErrorKind
from timeseats.services.factory import build_services
from timeseats.services.ticket_service import generate_ticket_number


@pytest.fixture
def reserve(services, make_product, make_slot, stock):
    """Returns a callable creating a fresh one-item RESERVED order."""
    slot = make_slot()
    product = make_product("Karaage", 600)
    stock(product, slot, 50)

    def _reserve(svc=None, quantity=1):
        svc = svc or services
        result = svc.orders.create_reservation(slot.id, [{"product_id": product.id, "quantity": quantity}])
        assert result.ok
        return result.value

    _reserve.slot = slot
    _reserve.product = product
    return _reserve


@pytest.fixture
def deferred_services(app, db_session):
    config = {**app.config, "TICKET_DEFERRED_PAYMENT_METHODS": frozenset({"PAYPAY"})}
    return build_services(db_session, config, clock=lambda: NOW)


def test_generated_number_format():
    assert re.fullmatch(r"T\d{9}", generate_ticket_number())


def test_cash_ticket_starts_paid(services, reserve):
    order = reserve()

    ticket = services.orders.confirm_order(order.id, "CASH").value

    assert ticket.is_paid is True
    assert ticket.payment_method == "CASH"


def test_deferred_method_starts_unpaid(deferred_services, reserve):
    order = reserve(deferred_services)

    ticket = deferred_services.orders.confirm_order(order.id, "PAYPAY", transaction_ref="pp-1").value

    assert ticket.is_paid is False
    assert ticket.transaction_ref == "pp-1"


def test_unpaid_ticket_cannot_be_delivered(deferred_services, reserve):
    order = reserve(deferred_services)
    ticket = deferred_services.orders.confirm_order(order.id, "PAYPAY").value

    refused = deferred_services.orders.mark_delivered(ticket.id)
    assert refused.kind == ErrorKind.PAYMENT_REQUIRED
    assert deferred_services.tickets.get_ticket(ticket.id).value.is_delivered is False

    assert deferred_services.tickets.update_payment_status(ticket.id, True).ok
    delivered = deferred_services.orders.mark_delivered(ticket.id)
    assert delivered.ok
    assert delivered.value.is_delivered is True


def test_undelivering_unpaid_ticket_is_allowed(deferred_services, reserve):
    order = reserve(deferred_services)
    ticket = deferred_services.orders.confirm_order(order.id, "PAYPAY").value

    result = deferred_services.tickets.update_delivery_status(ticket.id, False)

    assert result.ok


def test_generator_collision_draws_a_new_number(services, reserve):
    first = services.orders.confirm_order(reserve().id, "CASH", ticket_number="T000000001").value
    services.tickets.number_generator = iter(["T000000001", "T000000002"]).__next__

    second = services.orders.confirm_order(reserve().id, "CASH")

    assert second.ok
    assert second.value.ticket_number == "T000000002"
    assert first.ticket_number == "T000000001"


def test_exhausted_number_attempts_rolls_back(services, reserve):
    assert services.orders.confirm_order(reserve().id, "CASH", ticket_number="T000000007").ok
    services.tickets.number_generator = itertools.repeat("T000000007").__next__
    order = reserve(quantity=2)

    result = services.orders.confirm_order(order.id, "CASH")

    assert result.kind == ErrorKind.DUPLICATE_TICKET
    assert services.orders.get_order(order.id).value.status == ORDER_STATUS_RESERVED
    row = services.ledger.get_row(reserve.product.id, reserve.slot.id).value
    assert row.reserved_quantity == 2
    assert row.sold_quantity == 1


def test_supplied_duplicate_number_is_rejected(services, reserve):
    assert services.orders.confirm_order(reserve().id, "CASH", ticket_number="T123").ok
    order = reserve()

    result = services.orders.confirm_order(order.id, "CASH", ticket_number="T123")

    assert result.kind == ErrorKind.DUPLICATE_TICKET
    assert services.orders.get_order(order.id).value.status == ORDER_STATUS_RESERVED


def test_number_taken_after_check_rolls_back(services, reserve, monkeypatch):
    assert services.orders.confirm_order(reserve().id, "CASH", ticket_number="T000000042").ok
    order = reserve(quantity=3)
    # Another writer took the number between the lookup and the insert.
    monkeypatch.setattr(services.tickets.tickets, "number_exists", lambda number: False)

    result = services.orders.confirm_order(order.id, "CASH", ticket_number="T000000042")

    assert result.kind == ErrorKind.DUPLICATE_TICKET
    assert services.orders.get_order(order.id).value.status == ORDER_STATUS_RESERVED
    assert services.tickets.tickets.get_by_order(order.id) is None
    row = services.ledger.get_row(reserve.product.id, reserve.slot.id).value
    assert row.reserved_quantity == 3
    assert row.sold_quantity == 1


def test_lookup_by_number_and_order(services, reserve):
    order = reserve()
    ticket = services.orders.confirm_order(order.id, "CASH").value

    assert services.tickets.get_by_number(ticket.ticket_number).value.id == ticket.id
    assert services.tickets.get_by_order(order.id).value.id == ticket.id
    assert services.tickets.get_by_number("T000000000").kind == ErrorKind.TICKET_NOT_FOUND


def test_list_tickets_by_flags(deferred_services, reserve):
    paid = deferred_services.orders.confirm_order(reserve(deferred_services).id, "CASH").value
    unpaid = deferred_services.orders.confirm_order(reserve(deferred_services).id, "PAYPAY").value
    assert deferred_services.orders.mark_delivered(paid.id).ok

    assert [t.id for t in deferred_services.tickets.list_tickets(is_paid=False)] == [unpaid.id]
    assert [t.id for t in deferred_services.tickets.list_tickets(is_delivered=True)] == [paid.id]
    assert len(deferred_services.tickets.list_tickets()) == 2


def test_delete_ticket_keeps_order(services, reserve):
    order = reserve()
    ticket = services.orders.confirm_order(order.id, "CASH").value
    ticket_id = ticket.id

    assert services.tickets.delete_ticket(ticket_id).ok

    assert services.tickets.get_ticket(ticket_id).kind == ErrorKind.TICKET_NOT_FOUND
    assert services.orders.get_order(order.id).value.status == ORDER_STATUS_CONFIRMED


def test_flag_updates_on_missing_ticket(services):
    assert services.tickets.update_payment_status(55555, True).kind == ErrorKind.TICKET_NOT_FOUND
    assert services.tickets.update_delivery_status(55555, True).kind == ErrorKind.TICKET_NOT_FOUND
    assert services.tickets.delete_ticket(55555).kind == ErrorKind.TICKET_NOT_FOUND
