# Overview: Flask API routes for tickets; payment and hand-over flags at the counter.

from flask import Blueprint, request

from ..validation import require_bool, parse_optional_bool_arg, ValidationError
from .responses import services, error_response, server_error

tickets_bp = Blueprint("tickets", __name__, url_prefix="/api/tickets")


@tickets_bp.get("")
def list_tickets():
    """
    Query params:
    - is_paid: bool (optional)
    - is_delivered: bool (optional)
    """
    try:
        is_paid = parse_optional_bool_arg(request.args.get("is_paid"), "is_paid")
        is_delivered = parse_optional_bool_arg(request.args.get("is_delivered"), "is_delivered")
    except ValidationError as e:
        return {"error": str(e)}, 400

    tickets = services().tickets.list_tickets(is_paid=is_paid, is_delivered=is_delivered)
    return {"items": [t.to_dict() for t in tickets], "count": len(tickets)}


@tickets_bp.get("/<int:ticket_id>")
def get_ticket_route(ticket_id: int):
    result = services().tickets.get_ticket(ticket_id)
    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@tickets_bp.get("/number/<string:ticket_number>")
def get_ticket_by_number_route(ticket_number: str):
    result = services().tickets.get_by_number(ticket_number)
    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@tickets_bp.put("/<int:ticket_id>/payment")
def update_payment_route(ticket_id: int):
    """Body: {"is_paid": bool}"""
    payload = request.get_json(silent=True) or {}
    try:
        is_paid = require_bool(payload, "is_paid")
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().tickets.update_payment_status(ticket_id, is_paid)
    except Exception:
        return server_error("Failed to update payment status")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@tickets_bp.put("/<int:ticket_id>/delivery")
def update_delivery_route(ticket_id: int):
    """Body: {"is_delivered": bool}; delivering an unpaid ticket is refused (409)."""
    payload = request.get_json(silent=True) or {}
    try:
        is_delivered = require_bool(payload, "is_delivered")
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().tickets.update_delivery_status(ticket_id, is_delivered)
    except Exception:
        return server_error("Failed to update delivery status")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@tickets_bp.post("/<int:ticket_id>/delivered")
def mark_delivered_route(ticket_id: int):
    try:
        result = services().orders.mark_delivered(ticket_id)
    except Exception:
        return server_error("Failed to mark ticket delivered")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@tickets_bp.delete("/<int:ticket_id>")
def delete_ticket_route(ticket_id: int):
    try:
        result = services().tickets.delete_ticket(ticket_id)
    except Exception:
        return server_error("Failed to delete ticket")

    if not result.ok:
        return error_response(result)
    return {"deleted": True, "id": ticket_id}
