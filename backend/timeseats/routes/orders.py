# Overview: Flask API routes for orders; reservation, confirmation and cancellation.

# backend/timeseats/routes/orders.py
"""
Order lifecycle routes.

POST /api/orders                 reserve stock (RESERVED)
POST /api/orders/<id>/confirm    RESERVED -> CONFIRMED, returns the ticket
POST /api/orders/<id>/cancel     RESERVED -> CANCELED
"""
from flask import Blueprint, request

from ..models.orders import ORDER_STATUSES
from ..services.ticket_service import VALID_PAYMENT_METHODS
from ..validation import (
    require_int,
    optional_str,
    parse_order_items,
    ValidationError,
)
from .responses import services, error_response, server_error

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
def list_orders():
    """
    Query params:
    - status: RESERVED | CONFIRMED | CANCELED (optional)
    - sales_slot_id: int (optional)
    """
    status = request.args.get("status")
    sales_slot_id = request.args.get("sales_slot_id", type=int)

    if status is not None and status not in ORDER_STATUSES:
        return {"error": f"Unknown order status: {status}"}, 400

    orders = services().orders.list_orders(status=status, sales_slot_id=sales_slot_id)

    return {"items": [o.to_dict() for o in orders], "count": len(orders)}


@orders_bp.post("")
def create_order_route():
    """
    Body: {"sales_slot_id": int, "items": [{"product_id": int, "quantity": int}, ...]}
    """
    payload = request.get_json(silent=True) or {}

    try:
        slot_id = require_int(payload, "sales_slot_id", minimum=1)
        items = parse_order_items(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().orders.create_reservation(slot_id, items)
    except Exception:
        return server_error("Failed to create reservation")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict(), 201


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    svc = services()
    result = svc.orders.get_order(order_id)
    if not result.ok:
        return error_response(result)

    data = result.value.to_dict()
    ticket = svc.tickets.get_by_order(order_id)
    data["ticket"] = ticket.value.to_dict() if ticket.ok else None
    return data


@orders_bp.post("/<int:order_id>/confirm")
def confirm_order_route(order_id: int):
    """
    Body: {"payment_method": "CASH" | "PAYPAY", "ticket_number": str?, "transaction_ref": str?}
    """
    payload = request.get_json(silent=True) or {}

    payment_method = payload.get("payment_method")
    if not isinstance(payment_method, str) or not payment_method.strip():
        return {"error": f"payment_method required (one of {VALID_PAYMENT_METHODS})"}, 400

    try:
        ticket_number = optional_str(payload, "ticket_number", max_length=32)
        transaction_ref = optional_str(payload, "transaction_ref", max_length=128)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().orders.confirm_order(
            order_id,
            payment_method.strip().upper(),
            ticket_number=ticket_number,
            transaction_ref=transaction_ref,
        )
    except Exception:
        return server_error("Failed to confirm order")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict(), 201


@orders_bp.post("/<int:order_id>/cancel")
def cancel_order_route(order_id: int):
    try:
        result = services().orders.cancel_reservation(order_id)
    except Exception:
        return server_error("Failed to cancel order")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@orders_bp.get("/ticket/<string:ticket_number>")
def order_by_ticket_route(ticket_number: str):
    result = services().orders.get_order_by_ticket_number(ticket_number)
    if not result.ok:
        return error_response(result)
    return result.value.to_dict()
