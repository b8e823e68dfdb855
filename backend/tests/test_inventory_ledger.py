"""
Inventory ledger tests: three-counter accounting per (product, slot).
"""

from timeseats.results import ErrorKind


def test_set_initial_level_creates_row_with_zero_counters(services, make_product, make_slot):
    product = make_product()
    slot = make_slot()

    result = services.ledger.set_initial_level(product.id, slot.id, 10)

    assert result.ok
    row = result.value
    assert row.initial_quantity == 10
    assert row.reserved_quantity == 0
    assert row.sold_quantity == 0
    assert row.available_quantity == 10


def test_set_initial_level_overwrites_only_initial(services, db_session, make_product, make_slot, stock):
    product = make_product()
    slot = make_slot()
    row = stock(product, slot, 10)

    assert services.ledger.reserve(row, 3).ok
    db_session.commit()

    result = services.ledger.set_initial_level(product.id, slot.id, 20)

    assert result.ok
    assert result.value.initial_quantity == 20
    assert result.value.reserved_quantity == 3
    assert result.value.available_quantity == 17


def test_set_initial_level_rejects_negative(services, make_product, make_slot):
    product = make_product()
    slot = make_slot()

    result = services.ledger.set_initial_level(product.id, slot.id, -1)

    assert not result.ok
    assert result.kind == ErrorKind.INVALID_QUANTITY


def test_set_initial_level_cannot_drop_below_committed(services, db_session, make_product, make_slot, stock):
    product = make_product()
    slot = make_slot()
    row = stock(product, slot, 5)
    assert services.ledger.reserve(row, 2).ok
    assert services.ledger.convert_to_sold(row, 1).ok
    assert services.ledger.reserve(row, 2).ok
    db_session.commit()

    result = services.ledger.set_initial_level(product.id, slot.id, 2)

    assert not result.ok
    assert result.kind == ErrorKind.INVALID_QUANTITY
    unchanged = services.ledger.get_row(product.id, slot.id).value
    assert unchanged.initial_quantity == 5


def test_set_initial_level_unknown_product_or_slot(services, make_product, make_slot):
    product = make_product()
    slot = make_slot()

    missing_product = services.ledger.set_initial_level(999_999, slot.id, 1)
    missing_slot = services.ledger.set_initial_level(product.id, 999_999, 1)

    assert missing_product.kind == ErrorKind.PRODUCT_NOT_FOUND
    assert missing_slot.kind == ErrorKind.SLOT_NOT_FOUND


def test_reserve_then_release_restores_counters(services, make_product, make_slot, stock):
    row = stock(make_product(), make_slot(), 8)

    assert services.ledger.reserve(row, 5).ok
    assert row.reserved_quantity == 5
    assert row.available_quantity == 3

    assert services.ledger.release(row, 5).ok
    assert row.reserved_quantity == 0
    assert row.sold_quantity == 0
    assert row.available_quantity == 8


def test_reserve_more_than_available_reports_shortfall(services, make_product, make_slot, stock):
    row = stock(make_product(), make_slot(), 2)

    result = services.ledger.reserve(row, 5)

    assert not result.ok
    assert result.kind == ErrorKind.INSUFFICIENT_STOCK
    assert result.error.details["available"] == 2
    assert result.error.details["shortfall"] == 3
    assert row.reserved_quantity == 0


def test_reserve_rejects_non_positive_quantity(services, make_product, make_slot, stock):
    row = stock(make_product(), make_slot(), 2)

    assert services.ledger.reserve(row, 0).kind == ErrorKind.INVALID_QUANTITY
    assert services.ledger.reserve(row, -3).kind == ErrorKind.INVALID_QUANTITY


def test_release_and_convert_cannot_exceed_reserved(services, make_product, make_slot, stock):
    row = stock(make_product(), make_slot(), 5)
    assert services.ledger.reserve(row, 1).ok

    released = services.ledger.release(row, 2)
    sold = services.ledger.convert_to_sold(row, 2)

    assert released.kind == ErrorKind.INVALID_QUANTITY
    assert sold.kind == ErrorKind.INVALID_QUANTITY
    assert row.reserved_quantity == 1
    assert row.sold_quantity == 0


def test_convert_to_sold_moves_reserved_to_sold(services, make_product, make_slot, stock):
    row = stock(make_product(), make_slot(), 5)
    assert services.ledger.reserve(row, 3).ok

    assert services.ledger.convert_to_sold(row, 3).ok

    assert row.reserved_quantity == 0
    assert row.sold_quantity == 3
    assert row.initial_quantity == 5
    assert row.available_quantity == 2


def test_get_row_missing_is_inventory_not_found(services, make_product, make_slot):
    result = services.ledger.get_row(make_product().id, make_slot().id)

    assert result.kind == ErrorKind.INVENTORY_NOT_FOUND


def test_slot_summary_totals(services, db_session, make_product, make_slot, stock):
    slot = make_slot()
    row_a = stock(make_product("Takoyaki", 400), slot, 10)
    stock(make_product("Ramune", 150), slot, 6)
    assert services.ledger.reserve(row_a, 4).ok
    assert services.ledger.convert_to_sold(row_a, 1).ok
    db_session.commit()

    summary = services.ledger.slot_summary(slot.id)

    assert summary.ok
    assert summary.value == {
        "sales_slot_id": slot.id,
        "products": 2,
        "initial_quantity": 16,
        "reserved_quantity": 3,
        "sold_quantity": 1,
        "available_quantity": 12,
    }


def test_rows_for_unknown_slot(services):
    assert services.ledger.rows_for_slot(424242).kind == ErrorKind.SLOT_NOT_FOUND
