# Overview: Inventory ledger; three-counter stock accounting per (product, slot).

"""
Inventory Ledger Invariants (authoritative)

Every ProductInventory row carries three counters:
- initial_quantity: operator-set stock for the slot
- reserved_quantity: held by RESERVED orders
- sold_quantity: taken by CONFIRMED orders

available = initial - reserved - sold

Invariants, at all times:
- reserved >= 0 and sold >= 0
- reserved + sold <= initial (so available never goes negative)

Movement:
- reserve:         available -> reserved
- release:         reserved  -> available
- convert_to_sold: reserved  -> sold

Row primitives (reserve / release / convert_to_sold) mutate a row the caller has
already locked inside its own transaction; they never commit. The caller (the
order lifecycle) commits or rolls back the whole multi-row operation.
set_initial_level is a standalone operation and manages its own transaction.
"""

from __future__ import annotations

from ..models import ProductInventory
from ..results import ErrorKind, Ok, Result, err
from .concurrency import begin_write, run_with_retry


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class InventoryLedger:
    def __init__(self, session, inventory, products, slots, *, retry_attempts: int = 3):
        self.session = session
        self.inventory = inventory
        self.products = products
        self.slots = slots
        self.retry_attempts = retry_attempts

    # ------------------------------------------------------------------
    # Row primitives (caller holds the row lock and owns the transaction)
    # ------------------------------------------------------------------

    def reserve(self, row: ProductInventory, quantity: int) -> Result:
        if not _is_count(quantity) or quantity < 1:
            return err(ErrorKind.INVALID_QUANTITY, "Quantity must be a positive integer", quantity=quantity)
        available = row.available_quantity
        if quantity > available:
            return err(
                ErrorKind.INSUFFICIENT_STOCK,
                f"Not enough inventory for product {row.product_id}. "
                f"Available: {available}, Requested: {quantity}",
                product_id=row.product_id,
                sales_slot_id=row.sales_slot_id,
                available=available,
                requested=quantity,
                shortfall=quantity - available,
            )
        row.reserved_quantity += quantity
        return Ok(row)

    def release(self, row: ProductInventory, quantity: int) -> Result:
        if not _is_count(quantity) or quantity < 1:
            return err(ErrorKind.INVALID_QUANTITY, "Quantity must be a positive integer", quantity=quantity)
        if quantity > row.reserved_quantity:
            return err(
                ErrorKind.INVALID_QUANTITY,
                f"Cannot release {quantity}; only {row.reserved_quantity} reserved",
                product_id=row.product_id,
                sales_slot_id=row.sales_slot_id,
                reserved=row.reserved_quantity,
                requested=quantity,
            )
        row.reserved_quantity -= quantity
        return Ok(row)

    def convert_to_sold(self, row: ProductInventory, quantity: int) -> Result:
        if not _is_count(quantity) or quantity < 1:
            return err(ErrorKind.INVALID_QUANTITY, "Quantity must be a positive integer", quantity=quantity)
        if quantity > row.reserved_quantity:
            return err(
                ErrorKind.INVALID_QUANTITY,
                f"Cannot sell {quantity}; only {row.reserved_quantity} reserved",
                product_id=row.product_id,
                sales_slot_id=row.sales_slot_id,
                reserved=row.reserved_quantity,
                requested=quantity,
            )
        row.reserved_quantity -= quantity
        row.sold_quantity += quantity
        return Ok(row)

    # ------------------------------------------------------------------
    # Operator path
    # ------------------------------------------------------------------

    def set_initial_level(self, product_id: int, sales_slot_id: int, quantity: int):
        """
        Set the stock put up for sale for a product in a slot.

        Creates the row (reserved=0, sold=0) on first use; afterwards only
        initial_quantity is overwritten. The new level may not drop below what
        is already reserved or sold.
        """
        if not _is_count(quantity) or quantity < 0:
            return err(ErrorKind.INVALID_QUANTITY, "Quantity must be a non-negative integer", quantity=quantity)

        def _op():
            begin_write(self.session)
            if self.products.get(product_id) is None:
                self.session.rollback()
                return err(ErrorKind.PRODUCT_NOT_FOUND, f"Product with ID {product_id} not found", product_id=product_id)
            if self.slots.get(sales_slot_id) is None:
                self.session.rollback()
                return err(ErrorKind.SLOT_NOT_FOUND, f"Sales slot with ID {sales_slot_id} not found", sales_slot_id=sales_slot_id)

            row = self.inventory.get_for_update(product_id, sales_slot_id)
            if row is None:
                row = self.inventory.add(ProductInventory(
                    product_id=product_id,
                    sales_slot_id=sales_slot_id,
                    initial_quantity=quantity,
                    reserved_quantity=0,
                    sold_quantity=0,
                ))
            else:
                committed = row.reserved_quantity + row.sold_quantity
                if quantity < committed:
                    self.session.rollback()
                    return err(
                        ErrorKind.INVALID_QUANTITY,
                        f"Initial quantity {quantity} is below reserved + sold ({committed})",
                        product_id=product_id,
                        sales_slot_id=sales_slot_id,
                        reserved=row.reserved_quantity,
                        sold=row.sold_quantity,
                    )
                row.initial_quantity = quantity

            self.session.commit()
            return Ok(row)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_row(self, product_id: int, sales_slot_id: int):
        row = self.inventory.get(product_id, sales_slot_id)
        if row is None:
            return err(
                ErrorKind.INVENTORY_NOT_FOUND,
                f"Inventory not found for product {product_id} in sales slot {sales_slot_id}",
                product_id=product_id,
                sales_slot_id=sales_slot_id,
            )
        return Ok(row)

    def rows_for_slot(self, sales_slot_id: int):
        if self.slots.get(sales_slot_id) is None:
            return err(ErrorKind.SLOT_NOT_FOUND, f"Sales slot with ID {sales_slot_id} not found", sales_slot_id=sales_slot_id)
        return Ok(self.inventory.list_by_slot(sales_slot_id))

    def rows_for_product(self, product_id: int):
        if self.products.get(product_id) is None:
            return err(ErrorKind.PRODUCT_NOT_FOUND, f"Product with ID {product_id} not found", product_id=product_id)
        return Ok(self.inventory.list_by_product(product_id))

    def slot_summary(self, sales_slot_id: int):
        """Counter totals across every product in a slot."""
        if self.slots.get(sales_slot_id) is None:
            return err(ErrorKind.SLOT_NOT_FOUND, f"Sales slot with ID {sales_slot_id} not found", sales_slot_id=sales_slot_id)
        totals = self.inventory.totals_for_slot(sales_slot_id)
        initial = int(totals.initial or 0)
        reserved = int(totals.reserved or 0)
        sold = int(totals.sold or 0)
        return Ok({
            "sales_slot_id": sales_slot_id,
            "products": int(totals.rows or 0),
            "initial_quantity": initial,
            "reserved_quantity": reserved,
            "sold_quantity": sold,
            "available_quantity": initial - reserved - sold,
        })
