"""
HTTP tests through the Flask test client.

Slots are scheduled in 2030 so they stay in the future for the real clock the
routes use.
"""


def _product(client, name="Yakisoba", price_cents=500):
    resp = client.post("/api/products", json={"name": name, "price_cents": price_cents})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def _slot(client, start="2030-01-01T10:00:00Z", end="2030-01-01T10:30:00Z", is_active=True):
    resp = client.post("/api/slots", json={"start_time": start, "end_time": end, "is_active": is_active})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


def _stock(client, product, slot, quantity):
    resp = client.post(
        f"/api/products/{product['id']}/inventory",
        json={"sales_slot_id": slot["id"], "quantity": quantity},
    )
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


def _reserve(client, slot, product, quantity):
    return client.post(
        "/api/orders",
        json={"sales_slot_id": slot["id"], "items": [{"product_id": product["id"], "quantity": quantity}]},
    )


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json()["status"] == "healthy"


def test_info_reports_scheduling_settings(client):
    data = client.get("/info").get_json()

    assert data["slot_alignment_minutes"] == 30
    assert data["next_slot_lookahead_minutes"] == 30


def test_product_validation(client):
    missing = client.post("/api/products", json={"name": "No price"})
    negative = client.post("/api/products", json={"name": "Neg", "price_cents": -1})
    unknown = client.post("/api/products", json={"name": "X", "price_cents": 1, "sku": "A-1"})
    decimal = client.post("/api/products", json={"name": "X", "price_cents": 1.5})

    assert missing.status_code == 400
    assert negative.status_code == 400
    assert unknown.status_code == 400
    assert decimal.status_code == 400


def test_product_crud(client):
    product = _product(client)

    updated = client.put(f"/api/products/{product['id']}", json={"price_cents": 650})
    assert updated.status_code == 200
    assert updated.get_json()["price_cents"] == 650

    found = client.get("/api/products?name=soba").get_json()
    assert [p["id"] for p in found["items"]] == [product["id"]]

    deleted = client.delete(f"/api/products/{product['id']}")
    assert deleted.status_code == 200
    assert client.get(f"/api/products/{product['id']}").status_code == 404


def test_missing_product_is_404_with_kind(client):
    resp = client.get("/api/products/999999")

    assert resp.status_code == 404
    assert resp.get_json()["kind"] == "ProductNotFound"


def test_slot_validation_errors(client):
    _slot(client)

    unaligned = client.post("/api/slots", json={
        "start_time": "2030-01-01T11:10:00Z", "end_time": "2030-01-01T11:30:00Z",
    })
    overlapping = client.post("/api/slots", json={
        "start_time": "2030-01-01T10:00:00Z", "end_time": "2030-01-01T11:00:00Z",
    })
    backwards = client.post("/api/slots", json={
        "start_time": "2030-01-01T12:00:00Z", "end_time": "2030-01-01T11:30:00Z",
    })
    garbage = client.post("/api/slots", json={"start_time": "soon", "end_time": "later"})

    assert unaligned.status_code == 400
    assert unaligned.get_json()["kind"] == "UnalignedTimeSlot"
    assert overlapping.status_code == 409
    assert overlapping.get_json()["kind"] == "OverlappingSlot"
    assert backwards.status_code == 400
    assert backwards.get_json()["kind"] == "InvalidTimeRange"
    assert garbage.status_code == 400


def test_slot_offsets_are_returned_in_utc(client):
    slot = _slot(client, start="2030-01-01T19:00:00+09:00", end="2030-01-01T19:30:00+09:00")

    assert slot["start_time"] == "2030-01-01T10:00:00Z"
    assert slot["end_time"] == "2030-01-01T10:30:00Z"


def test_slot_activation_and_listing(client):
    slot = _slot(client, is_active=False)

    toggled = client.post(f"/api/slots/{slot['id']}/active", json={"is_active": True})
    assert toggled.status_code == 200
    assert toggled.get_json()["is_active"] is True

    active = client.get("/api/slots?active=true").get_json()
    assert [s["id"] for s in active["items"]] == [slot["id"]]

    assert client.post(f"/api/slots/{slot['id']}/active", json={}).status_code == 400


def test_current_and_next_slot_shape(client):
    assert "slot" in client.get("/api/slots/current").get_json()
    assert "slot" in client.get("/api/slots/next").get_json()


def test_order_flow(client):
    product = _product(client, price_cents=500)
    slot = _slot(client)
    _stock(client, product, slot, 5)

    created = _reserve(client, slot, product, 2)
    assert created.status_code == 201
    order = created.get_json()
    assert order["status"] == "RESERVED"
    assert order["total_amount_cents"] == 1000

    confirmed = client.post(f"/api/orders/{order['id']}/confirm", json={"payment_method": "cash"})
    assert confirmed.status_code == 201
    ticket = confirmed.get_json()
    assert ticket["is_paid"] is True
    assert ticket["is_delivered"] is False

    again = client.post(f"/api/orders/{order['id']}/confirm", json={"payment_method": "CASH"})
    assert again.status_code == 409

    delivered = client.post(f"/api/tickets/{ticket['id']}/delivered")
    assert delivered.status_code == 200
    assert delivered.get_json()["is_delivered"] is True

    by_number = client.get(f"/api/orders/ticket/{ticket['ticket_number']}").get_json()
    assert by_number["id"] == order["id"]
    assert by_number["status"] == "CONFIRMED"

    detail = client.get(f"/api/orders/{order['id']}").get_json()
    assert detail["ticket"]["ticket_number"] == ticket["ticket_number"]

    summary = client.get(f"/api/slots/{slot['id']}/summary").get_json()
    assert summary["sold_quantity"] == 2
    assert summary["available_quantity"] == 3


def test_insufficient_stock_is_409(client):
    product = _product(client)
    slot = _slot(client)
    _stock(client, product, slot, 1)

    resp = _reserve(client, slot, product, 2)

    assert resp.status_code == 409
    body = resp.get_json()
    assert body["kind"] == "InsufficientStock"
    assert body["details"]["shortfall"] == 1


def test_order_payload_errors(client):
    slot = _slot(client)

    not_list = client.post("/api/orders", json={"sales_slot_id": slot["id"], "items": "many"})
    empty = client.post("/api/orders", json={"sales_slot_id": slot["id"], "items": []})
    no_method = client.post("/api/orders/1/confirm", json={})

    assert not_list.status_code == 400
    assert empty.status_code == 400
    assert empty.get_json()["kind"] == "EmptyOrder"
    assert no_method.status_code == 400


def test_cancel_and_missing_order(client):
    product = _product(client)
    slot = _slot(client)
    _stock(client, product, slot, 3)
    order = _reserve(client, slot, product, 3).get_json()

    canceled = client.post(f"/api/orders/{order['id']}/cancel")
    assert canceled.status_code == 200
    assert canceled.get_json()["status"] == "CANCELED"

    assert client.post(f"/api/orders/{order['id']}/cancel").status_code == 409
    assert client.post("/api/orders/999999/cancel").status_code == 404
    assert client.get("/api/orders?status=CANCELED").get_json()["count"] == 1
    assert client.get("/api/orders?status=LOST").status_code == 400


def test_slot_with_reservations_cannot_be_deleted(client):
    product = _product(client)
    slot = _slot(client)
    _stock(client, product, slot, 3)
    assert _reserve(client, slot, product, 1).status_code == 201

    resp = client.delete(f"/api/slots/{slot['id']}")

    assert resp.status_code == 409
    assert resp.get_json()["kind"] == "SlotHasActiveInventory"


def test_ticket_flags(client):
    product = _product(client)
    slot = _slot(client)
    _stock(client, product, slot, 3)
    order = _reserve(client, slot, product, 1).get_json()
    ticket = client.post(f"/api/orders/{order['id']}/confirm", json={"payment_method": "PAYPAY"}).get_json()

    unpaid = client.put(f"/api/tickets/{ticket['id']}/payment", json={"is_paid": False})
    assert unpaid.status_code == 200

    refused = client.put(f"/api/tickets/{ticket['id']}/delivery", json={"is_delivered": True})
    assert refused.status_code == 409
    assert refused.get_json()["kind"] == "PaymentRequired"

    listed = client.get("/api/tickets?is_paid=false").get_json()
    assert [t["id"] for t in listed["items"]] == [ticket["id"]]
    assert client.get("/api/tickets?is_paid=maybe").status_code == 400

    assert client.delete(f"/api/tickets/{ticket['id']}").status_code == 200
    assert client.get(f"/api/tickets/{ticket['id']}").status_code == 404


def test_inventory_views(client):
    product = _product(client)
    slot = _slot(client)
    _stock(client, product, slot, 4)

    by_product = client.get(f"/api/products/{product['id']}/inventory").get_json()
    by_slot = client.get(f"/api/slots/{slot['id']}/inventory").get_json()
    one = client.get(f"/api/products/{product['id']}/inventory/{slot['id']}")

    assert by_product["count"] == 1
    assert by_slot["items"][0]["initial_quantity"] == 4
    assert one.status_code == 200
    assert client.get(f"/api/products/{product['id']}/inventory/999999").status_code == 404
