# backend/timeseats/services/products_service.py
"""
Product Catalog

Products are global (not slot-scoped); their per-slot stock lives in
ProductInventory and is set through the inventory ledger. A product with
reserved or sold stock anywhere, or that an order refers to, cannot be deleted.
"""
from __future__ import annotations

from ..models import Product
from ..results import ErrorKind, Ok, err
from .concurrency import begin_write, run_with_retry

PRODUCT_MUTABLE_FIELDS = {"name", "description", "price_cents", "is_active"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


class ProductCatalog:
    def __init__(self, session, products, inventory, ledger, *, retry_attempts: int = 3):
        self.session = session
        self.products = products
        self.inventory = inventory
        self.ledger = ledger
        self.retry_attempts = retry_attempts

    def _not_found(self, product_id: int):
        return err(ErrorKind.PRODUCT_NOT_FOUND, f"Product with ID {product_id} not found", product_id=product_id)

    def list_products(self, *, name: str | None = None, page: int | None = None, per_page: int | None = None) -> dict:
        """
        Product listing with optional name search and pagination.

        page: 1-indexed. If omitted, returns all items.
        per_page: default 20, max 100.
        """
        if name:
            products = self.products.search_by_name(name)
        else:
            products = self.products.find_all()

        if page is None:
            return {
                "items": [p.to_dict() for p in products],
                "count": len(products),
            }

        per_page = min(per_page or 20, 100)  # Default 20, max 100
        page = max(page, 1)

        total = len(products)
        total_pages = (total + per_page - 1) // per_page if total > 0 else 1
        window = products[(page - 1) * per_page: page * per_page]

        return {
            "items": [p.to_dict() for p in window],
            "count": len(window),
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }

    def get_product(self, product_id: int):
        product = self.products.get(product_id)
        if product is None:
            return self._not_found(product_id)
        return Ok(product)

    def create_product(self, patch: dict):
        """Create product using a validated patch dict."""
        product = Product()
        apply_product_patch(product, patch)
        if product.is_active is None:
            product.is_active = True
        self.products.add(product)
        self.session.commit()
        return Ok(product)

    def update_product(self, product_id: int, patch: dict):
        """
        Update product fields. Existing orders keep the unit price they
        captured at reservation time.
        """
        def _op():
            product = self.products.get(product_id)
            if product is None:
                return self._not_found(product_id)
            apply_product_patch(product, patch)
            self.session.commit()
            return Ok(product)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def delete_product(self, product_id: int):
        def _op():
            begin_write(self.session)
            product = self.products.get(product_id)
            if product is None:
                self.session.rollback()
                return self._not_found(product_id)

            if self.inventory.has_active_rows(product_id=product_id):
                self.session.rollback()
                return err(
                    ErrorKind.PRODUCT_HAS_ACTIVE_INVENTORY,
                    "Cannot delete product with active inventory",
                    product_id=product_id,
                )

            if self.products.is_referenced_by_orders(product_id):
                self.session.rollback()
                return err(
                    ErrorKind.PRODUCT_HAS_ACTIVE_INVENTORY,
                    "Cannot delete product referenced by orders; deactivate it instead",
                    product_id=product_id,
                )

            self.inventory.delete_rows(self.inventory.list_by_product(product_id))
            self.products.delete(product)
            self.session.commit()
            return Ok(True)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def set_stock(self, product_id: int, sales_slot_id: int, quantity: int):
        """Operator path for putting a product up for sale in a slot."""
        return self.ledger.set_initial_level(product_id, sales_slot_id, quantity)

    def stock_for_slot(self, product_id: int, sales_slot_id: int):
        return self.ledger.get_row(product_id, sales_slot_id)

    def stock_by_product(self, product_id: int):
        return self.ledger.rows_for_product(product_id)
