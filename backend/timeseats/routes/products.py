# Overview: Flask API routes for the product catalog and per-slot stock levels.

# backend/timeseats/routes/products.py
"""
Product management routes.

Products are global; stock is set per sales slot through
POST /api/products/<id>/inventory.
"""
from flask import Blueprint, request

from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    require_int,
    ValidationError,
)
from .responses import services, error_response, server_error

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price_cents", "is_active"},
    required_on_create={"name", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products.

    Query params:
    - name: str (optional) - case-insensitive substring search
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    name = request.args.get("name")
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)

    try:
        return services().products.list_products(name=name, page=page, per_page=per_page)
    except Exception:
        return server_error("Failed to list products")


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().products.create_product(patch)
    except Exception:
        return server_error("Failed to create product")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict(), 201


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    result = services().products.get_product(product_id)
    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().products.update_product(product_id, patch)
    except Exception:
        return server_error("Failed to update product")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """
    Delete a product.

    Blocked (409) while any slot holds reserved or sold stock of it, or
    while an order refers to it.
    """
    try:
        result = services().products.delete_product(product_id)
    except Exception:
        return server_error("Failed to delete product")

    if not result.ok:
        return error_response(result)
    return {"deleted": True, "id": product_id}


@products_bp.post("/<int:product_id>/inventory")
def set_inventory_route(product_id: int):
    """
    Set the stock level of a product in one sales slot.

    Body: {"sales_slot_id": int, "quantity": int}
    """
    payload = request.get_json(silent=True) or {}

    try:
        slot_id = require_int(payload, "sales_slot_id", minimum=1)
        quantity = require_int(payload, "quantity", minimum=0)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        result = services().products.set_stock(product_id, slot_id, quantity)
    except Exception:
        return server_error("Failed to set inventory")

    if not result.ok:
        return error_response(result)
    return result.value.to_dict()


@products_bp.get("/<int:product_id>/inventory")
def list_inventory_route(product_id: int):
    result = services().products.stock_by_product(product_id)
    if not result.ok:
        return error_response(result)
    rows = [row.to_dict() for row in result.value]
    return {"items": rows, "count": len(rows)}


@products_bp.get("/<int:product_id>/inventory/<int:slot_id>")
def get_inventory_route(product_id: int, slot_id: int):
    result = services().products.stock_for_slot(product_id, slot_id)
    if not result.ok:
        return error_response(result)
    return result.value.to_dict()
