from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ORDER_STATUS_RESERVED = "RESERVED"
ORDER_STATUS_CONFIRMED = "CONFIRMED"
ORDER_STATUS_CANCELED = "CANCELED"

ORDER_STATUSES = [
    ORDER_STATUS_RESERVED,
    ORDER_STATUS_CONFIRMED,
    ORDER_STATUS_CANCELED,
]


class Order(db.Model):
    """
    Customer order against one sales slot.

    LIFECYCLE:
        RESERVED --confirm--> CONFIRMED
        RESERVED --cancel-->  CANCELED
    CONFIRMED and CANCELED are terminal. Items and totals are fixed at creation;
    only status (and its timestamps) change afterwards, always through a
    compare-and-set on the stored status.

    sales_slot_id is nulled when an empty slot is deleted so that canceled
    order history survives.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_slot_status", "sales_slot_id", "status"),
        db.CheckConstraint("total_amount_cents >= 0", name="ck_orders_total_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sales_slot_id = db.Column(
        db.Integer,
        db.ForeignKey("sales_slots.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_RESERVED, index=True)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    canceled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    sales_slot = db.relationship("SalesSlot")

    def __repr__(self) -> str:
        return f"<Order id={self.id} slot_id={self.sales_slot_id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sales_slot_id": self.sales_slot_id,
            "status": self.status,
            "total_amount_cents": self.total_amount_cents,
            "items": [item.to_dict() for item in self.items],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "confirmed_at": to_utc_z(self.confirmed_at) if self.confirmed_at else None,
            "canceled_at": to_utc_z(self.canceled_at) if self.canceled_at else None,
        }


class OrderItem(db.Model):
    """Individual line on an order; price captured at reservation time."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.UniqueConstraint("order_id", "position", name="uq_order_items_position"),
        db.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    position = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "position": self.position,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }


class OrderTicket(db.Model):
    """
    Payment/delivery record for a confirmed order.

    One ticket per order (uq on order_id); ticket_number is the human-facing
    code printed for the customer. The relationship to Order is a plain
    reference: deleting a ticket leaves the order alone.
    """
    __tablename__ = "order_tickets"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_order_tickets_order"),
        db.UniqueConstraint("ticket_number", name="uq_order_tickets_number"),
        db.Index("ix_order_tickets_paid_delivered", "is_paid", "is_delivered"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)

    ticket_number = db.Column(db.String(32), nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)
    # Opaque reference from the payment provider (e.g. PayPay transaction id)
    transaction_ref = db.Column(db.String(128), nullable=True)

    is_paid = db.Column(db.Boolean, nullable=False, default=True)
    is_delivered = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    order = db.relationship("Order", backref=db.backref("ticket", uselist=False, lazy=True))

    def __repr__(self) -> str:
        return f"<OrderTicket id={self.id} number={self.ticket_number!r} order_id={self.order_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "ticket_number": self.ticket_number,
            "payment_method": self.payment_method,
            "transaction_ref": self.transaction_ref,
            "is_paid": self.is_paid,
            "is_delivered": self.is_delivered,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
