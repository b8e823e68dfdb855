# Overview: Flask API routes for sales slots; scheduling, activation and stock views.

# backend/timeseats/routes/slots.py
"""
Sales slot routes.

Times are ISO-8601 strings; offsets are converted to UTC, naive values are
taken as UTC. Responses carry "Z" timestamps.
"""
from flask import Blueprint, request

from ..models import SalesSlot
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_bool,
    parse_optional_bool_arg,
    ValidationError,
)
from .responses import services, error_response, server_error

SLOT_POLICY = ModelValidationPolicy(
    writable_fields={"start_time", "end_time", "is_active"},
    required_on_create={"start_time", "end_time"},
)

slots_bp = Blueprint("slots", __name__, url_prefix="/api/slots")


@slots_bp.get("")
def list_slots():
    """
    List sales slots ordered by start time.

    Query params:
    - active: bool (optional) - only active slots when true
    """
    try:
        active_only = bool(parse_optional_bool_arg(request.args.get("active"), "active"))
    except ValidationError as e:
        return {"error": str(e)}, 400

    slots = services().slots.list_slots(active_only=active_only)
    return {"items": [s.to_dict() for s in slots], "count": len(slots)}


@slots_bp.post("")
def create_slot_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=SalesSlot, payload=payload, policy=SLOT_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().slots.create_slot(
            patch["start_time"],
            patch["end_time"],
            is_active=bool(patch.get("is_active", False)),
        )
    except Exception:
        return server_error("Failed to create sales slot")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict(), 201


@slots_bp.get("/current")
def current_slot_route():
    """The active slot containing now; {"slot": null} when there is none."""
    slot = services().slots.current_slot()
    return {"slot": slot.to_dict() if slot else None}


@slots_bp.get("/next")
def next_slot_route():
    """The next active slot starting within the look-ahead window."""
    slot = services().slots.next_slot()
    return {"slot": slot.to_dict() if slot else None}


@slots_bp.get("/<int:slot_id>")
def get_slot_route(slot_id: int):
    result = services().slots.get_slot(slot_id)
    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@slots_bp.put("/<int:slot_id>")
def update_slot_route(slot_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=SalesSlot, payload=payload, policy=SLOT_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().slots.update_slot(slot_id, patch)
    except Exception:
        return server_error("Failed to update sales slot")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@slots_bp.delete("/<int:slot_id>")
def delete_slot_route(slot_id: int):
    try:
        result = services().slots.delete_slot(slot_id)
    except Exception:
        return server_error("Failed to delete sales slot")

    if not result.ok:
        return error_response(result)
    return {"deleted": True, "id": slot_id}


@slots_bp.post("/<int:slot_id>/active")
def toggle_active_route(slot_id: int):
    """Body: {"is_active": bool}"""
    payload = request.get_json(silent=True) or {}

    try:
        is_active = require_bool(payload, "is_active")
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().slots.toggle_active(slot_id, is_active)
    except Exception:
        return server_error("Failed to change sales slot activation")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@slots_bp.get("/<int:slot_id>/inventory")
def slot_inventory_route(slot_id: int):
    result = services().ledger.rows_for_slot(slot_id)
    if not result.ok:
        return error_response(result)
    rows = [row.to_dict() for row in result.value]
    return {"items": rows, "count": len(rows)}


@slots_bp.get("/<int:slot_id>/summary")
def slot_summary_route(slot_id: int):
    result = services().ledger.slot_summary(slot_id)
    if not result.ok:
        return error_response(result)
    return result.value
