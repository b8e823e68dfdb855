from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class SalesSlot(db.Model):
    """
    A time window in which products are sold.

    Intervals are half-open: [start_time, end_time). Two slots never overlap,
    whatever their is_active flag. Times are stored UTC-naive.
    """
    __tablename__ = "sales_slots"
    __table_args__ = (
        db.Index("ix_sales_slots_start_end", "start_time", "end_time"),
        db.CheckConstraint("end_time > start_time", name="ck_sales_slots_time_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<SalesSlot id={self.id} {self.start_time}..{self.end_time} active={self.is_active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductInventory(db.Model):
    """
    Stock of one product within one sales slot.

    COUNTERS:
    - initial_quantity: what the operator put up for sale
    - reserved_quantity: held by RESERVED orders
    - sold_quantity: converted by CONFIRMED orders

    INVARIANT (also enforced by check constraints):
        0 <= reserved, 0 <= sold, reserved + sold <= initial

    Only services/inventory_service.InventoryLedger writes these counters.
    version_id gives optimistic locking on top of SELECT ... FOR UPDATE.
    """
    __tablename__ = "product_inventories"
    __table_args__ = (
        db.UniqueConstraint("product_id", "sales_slot_id", name="uq_inventory_product_slot"),
        db.CheckConstraint("initial_quantity >= 0", name="ck_inventory_initial_non_negative"),
        db.CheckConstraint("reserved_quantity >= 0", name="ck_inventory_reserved_non_negative"),
        db.CheckConstraint("sold_quantity >= 0", name="ck_inventory_sold_non_negative"),
        db.CheckConstraint(
            "reserved_quantity + sold_quantity <= initial_quantity",
            name="ck_inventory_within_initial",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    sales_slot_id = db.Column(db.Integer, db.ForeignKey("sales_slots.id"), nullable=False, index=True)

    initial_quantity = db.Column(db.Integer, nullable=False, default=0)
    reserved_quantity = db.Column(db.Integer, nullable=False, default=0)
    sold_quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product")
    sales_slot = db.relationship("SalesSlot", backref=db.backref("inventories", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def available_quantity(self) -> int:
        return self.initial_quantity - self.reserved_quantity - self.sold_quantity

    def __repr__(self) -> str:
        return (
            f"<ProductInventory id={self.id} product_id={self.product_id} "
            f"slot_id={self.sales_slot_id} {self.initial_quantity}/{self.reserved_quantity}/{self.sold_quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "sales_slot_id": self.sales_slot_id,
            "initial_quantity": self.initial_quantity,
            "reserved_quantity": self.reserved_quantity,
            "sold_quantity": self.sold_quantity,
            "available_quantity": self.available_quantity,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
