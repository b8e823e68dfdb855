# Overview: SQLAlchemy-backed repositories; the only place engine services touch queries.

"""
Repositories wrap a SQLAlchemy session and expose the narrow read/write
operations the engine needs. They never commit; transaction boundaries belong
to the calling service.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, update

from .models import (
    Order,
    OrderItem,
    OrderTicket,
    Product,
    ProductInventory,
    SalesSlot,
)
from .services.concurrency import lock_for_update


class ProductRepository:
    def __init__(self, session):
        self.session = session

    def get(self, product_id: int) -> Product | None:
        return self.session.get(Product, product_id)

    def find_all(self) -> list[Product]:
        return self.session.query(Product).order_by(Product.id).all()

    def search_by_name(self, name: str) -> list[Product]:
        pattern = f"%{name.strip()}%"
        return (
            self.session.query(Product)
            .filter(Product.name.ilike(pattern))
            .order_by(Product.name, Product.id)
            .all()
        )

    def is_referenced_by_orders(self, product_id: int) -> bool:
        return (
            self.session.query(OrderItem.id).filter_by(product_id=product_id).first()
            is not None
        )

    def add(self, product: Product) -> Product:
        self.session.add(product)
        self.session.flush()
        return product

    def delete(self, product: Product) -> None:
        self.session.delete(product)
        self.session.flush()


class InventoryRepository:
    def __init__(self, session):
        self.session = session

    def get(self, product_id: int, sales_slot_id: int) -> ProductInventory | None:
        return (
            self.session.query(ProductInventory)
            .filter_by(product_id=product_id, sales_slot_id=sales_slot_id)
            .first()
        )

    def get_for_update(self, product_id: int, sales_slot_id: int) -> ProductInventory | None:
        query = self.session.query(ProductInventory).filter_by(
            product_id=product_id, sales_slot_id=sales_slot_id
        )
        return lock_for_update(query).populate_existing().first()

    def lock_rows(self, row_ids) -> dict[int, ProductInventory]:
        """
        Lock rows in ascending id order and return them keyed by id.

        A fixed lock order keeps two multi-row operations from deadlocking.
        populate_existing() refreshes counters already in the identity map.
        """
        ids = sorted(set(row_ids))
        if not ids:
            return {}
        query = (
            self.session.query(ProductInventory)
            .filter(ProductInventory.id.in_(ids))
            .order_by(ProductInventory.id)
        )
        rows = lock_for_update(query).populate_existing().all()
        return {row.id: row for row in rows}

    def list_by_slot(self, sales_slot_id: int) -> list[ProductInventory]:
        return (
            self.session.query(ProductInventory)
            .filter_by(sales_slot_id=sales_slot_id)
            .order_by(ProductInventory.product_id)
            .all()
        )

    def list_by_product(self, product_id: int) -> list[ProductInventory]:
        return (
            self.session.query(ProductInventory)
            .filter_by(product_id=product_id)
            .order_by(ProductInventory.sales_slot_id)
            .all()
        )

    def has_active_rows(self, *, sales_slot_id: int | None = None, product_id: int | None = None) -> bool:
        query = self.session.query(ProductInventory.id).filter(
            (ProductInventory.reserved_quantity > 0) | (ProductInventory.sold_quantity > 0)
        )
        if sales_slot_id is not None:
            query = query.filter(ProductInventory.sales_slot_id == sales_slot_id)
        if product_id is not None:
            query = query.filter(ProductInventory.product_id == product_id)
        return query.first() is not None

    def totals_for_slot(self, sales_slot_id: int):
        return (
            self.session.query(
                func.count(ProductInventory.id).label("rows"),
                func.coalesce(func.sum(ProductInventory.initial_quantity), 0).label("initial"),
                func.coalesce(func.sum(ProductInventory.reserved_quantity), 0).label("reserved"),
                func.coalesce(func.sum(ProductInventory.sold_quantity), 0).label("sold"),
            )
            .filter(ProductInventory.sales_slot_id == sales_slot_id)
            .one()
        )

    def add(self, row: ProductInventory) -> ProductInventory:
        self.session.add(row)
        self.session.flush()
        return row

    def delete_rows(self, rows) -> int:
        count = 0
        for row in rows:
            self.session.delete(row)
            count += 1
        self.session.flush()
        return count


class SlotRepository:
    def __init__(self, session):
        self.session = session

    def get(self, slot_id: int) -> SalesSlot | None:
        return self.session.get(SalesSlot, slot_id)

    def find_all(self, *, active_only: bool = False) -> list[SalesSlot]:
        query = self.session.query(SalesSlot)
        if active_only:
            query = query.filter(SalesSlot.is_active.is_(True))
        return query.order_by(SalesSlot.start_time).all()

    def find_containing(self, at: datetime) -> list[SalesSlot]:
        """Slots whose half-open interval contains ``at``."""
        return (
            self.session.query(SalesSlot)
            .filter(SalesSlot.start_time <= at, SalesSlot.end_time > at)
            .order_by(SalesSlot.start_time)
            .all()
        )

    def find_overlapping(self, start: datetime, end: datetime, *, exclude_id: int | None = None) -> list[SalesSlot]:
        """Slots intersecting [start, end): s.start < end and s.end > start."""
        query = self.session.query(SalesSlot).filter(
            SalesSlot.start_time < end,
            SalesSlot.end_time > start,
        )
        if exclude_id is not None:
            query = query.filter(SalesSlot.id != exclude_id)
        return query.order_by(SalesSlot.start_time).all()

    def find_starting_between(self, after: datetime, before: datetime, *, active_only: bool = True) -> list[SalesSlot]:
        """Slots with after < start_time < before, earliest first."""
        query = self.session.query(SalesSlot).filter(
            SalesSlot.start_time > after,
            SalesSlot.start_time < before,
        )
        if active_only:
            query = query.filter(SalesSlot.is_active.is_(True))
        return query.order_by(SalesSlot.start_time).all()

    def add(self, slot: SalesSlot) -> SalesSlot:
        self.session.add(slot)
        self.session.flush()
        return slot

    def delete(self, slot: SalesSlot) -> None:
        # Keep order history; canceled orders lose their slot reference.
        self.session.execute(
            update(Order)
            .where(Order.sales_slot_id == slot.id)
            .values(sales_slot_id=None)
        )
        self.session.expire(slot)
        self.session.delete(slot)
        self.session.flush()


class OrderRepository:
    def __init__(self, session):
        self.session = session

    def get(self, order_id: int) -> Order | None:
        return self.session.get(Order, order_id)

    def find_all(self, *, status: str | None = None, sales_slot_id: int | None = None) -> list[Order]:
        query = self.session.query(Order)
        if status is not None:
            query = query.filter(Order.status == status)
        if sales_slot_id is not None:
            query = query.filter(Order.sales_slot_id == sales_slot_id)
        return query.order_by(Order.id).all()

    def create(self, *, sales_slot_id: int, status: str, items: list[dict], total_amount_cents: int) -> Order:
        order = Order(
            sales_slot_id=sales_slot_id,
            status=status,
            total_amount_cents=total_amount_cents,
        )
        for position, item in enumerate(items, start=1):
            order.items.append(OrderItem(position=position, **item))
        self.session.add(order)
        self.session.flush()
        return order

    def compare_and_set_status(self, order_id: int, *, expected: str, new: str, **timestamps) -> bool:
        """
        UPDATE orders SET status=new WHERE id=? AND status=expected.

        Returns True when this caller won the transition.
        """
        result = self.session.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == expected)
            .values(status=new, updated_at=func.now(), **timestamps)
            .execution_options(synchronize_session=False)
        )
        won = result.rowcount == 1
        if won:
            order = self.session.get(Order, order_id)
            if order is not None:
                self.session.expire(order)
        return won


class TicketRepository:
    def __init__(self, session):
        self.session = session

    def get(self, ticket_id: int) -> OrderTicket | None:
        return self.session.get(OrderTicket, ticket_id)

    def get_for_update(self, ticket_id: int) -> OrderTicket | None:
        query = self.session.query(OrderTicket).filter_by(id=ticket_id)
        return lock_for_update(query).populate_existing().first()

    def get_by_order(self, order_id: int) -> OrderTicket | None:
        return self.session.query(OrderTicket).filter_by(order_id=order_id).first()

    def get_by_number(self, ticket_number: str) -> OrderTicket | None:
        return self.session.query(OrderTicket).filter_by(ticket_number=ticket_number).first()

    def number_exists(self, ticket_number: str) -> bool:
        return (
            self.session.query(OrderTicket.id).filter_by(ticket_number=ticket_number).first()
            is not None
        )

    def find_all(self, *, is_paid: bool | None = None, is_delivered: bool | None = None) -> list[OrderTicket]:
        query = self.session.query(OrderTicket)
        if is_paid is not None:
            query = query.filter(OrderTicket.is_paid.is_(is_paid))
        if is_delivered is not None:
            query = query.filter(OrderTicket.is_delivered.is_(is_delivered))
        return query.order_by(OrderTicket.id).all()

    def add(self, ticket: OrderTicket) -> OrderTicket:
        self.session.add(ticket)
        self.session.flush()
        return ticket

    def delete(self, ticket: OrderTicket) -> None:
        self.session.delete(ticket)
        self.session.flush()
