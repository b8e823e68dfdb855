"""Initial schema: products, sales slots, per-slot inventory, orders and tickets

Revision ID: 20260501_initial
Revises:
Create Date: 2026-05-01
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260501_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('price_cents >= 0', name='ck_products_price_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index('ix_products_name', ['name'], unique=False)

    op.create_table('sales_slots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('end_time > start_time', name='ck_sales_slots_time_order'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales_slots', schema=None) as batch_op:
        batch_op.create_index('ix_sales_slots_start_end', ['start_time', 'end_time'], unique=False)
        batch_op.create_index('ix_sales_slots_start_time', ['start_time'], unique=False)
        batch_op.create_index('ix_sales_slots_is_active', ['is_active'], unique=False)

    op.create_table('product_inventories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('sales_slot_id', sa.Integer(), nullable=False),
        sa.Column('initial_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reserved_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sold_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('initial_quantity >= 0', name='ck_inventory_initial_non_negative'),
        sa.CheckConstraint('reserved_quantity >= 0', name='ck_inventory_reserved_non_negative'),
        sa.CheckConstraint('sold_quantity >= 0', name='ck_inventory_sold_non_negative'),
        sa.CheckConstraint('reserved_quantity + sold_quantity <= initial_quantity', name='ck_inventory_within_initial'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.ForeignKeyConstraint(['sales_slot_id'], ['sales_slots.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'sales_slot_id', name='uq_inventory_product_slot'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('product_inventories', schema=None) as batch_op:
        batch_op.create_index('ix_product_inventories_product_id', ['product_id'], unique=False)
        batch_op.create_index('ix_product_inventories_sales_slot_id', ['sales_slot_id'], unique=False)

    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sales_slot_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='RESERVED'),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('total_amount_cents >= 0', name='ck_orders_total_non_negative'),
        sa.ForeignKeyConstraint(['sales_slot_id'], ['sales_slots.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index('ix_orders_slot_status', ['sales_slot_id', 'status'], unique=False)
        batch_op.create_index('ix_orders_sales_slot_id', ['sales_slot_id'], unique=False)
        batch_op.create_index('ix_orders_status', ['status'], unique=False)

    op.create_table('order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('line_total_cents', sa.Integer(), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_order_items_quantity_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'position', name='uq_order_items_position'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_items', schema=None) as batch_op:
        batch_op.create_index('ix_order_items_order_id', ['order_id'], unique=False)

    op.create_table('order_tickets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('ticket_number', sa.String(length=32), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('transaction_ref', sa.String(length=128), nullable=True),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('is_delivered', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', name='uq_order_tickets_order'),
        sa.UniqueConstraint('ticket_number', name='uq_order_tickets_number'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_tickets', schema=None) as batch_op:
        batch_op.create_index('ix_order_tickets_paid_delivered', ['is_paid', 'is_delivered'], unique=False)


def downgrade():
    with op.batch_alter_table('order_tickets', schema=None) as batch_op:
        batch_op.drop_index('ix_order_tickets_paid_delivered')
    op.drop_table('order_tickets')

    with op.batch_alter_table('order_items', schema=None) as batch_op:
        batch_op.drop_index('ix_order_items_order_id')
    op.drop_table('order_items')

    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.drop_index('ix_orders_status')
        batch_op.drop_index('ix_orders_sales_slot_id')
        batch_op.drop_index('ix_orders_slot_status')
    op.drop_table('orders')

    with op.batch_alter_table('product_inventories', schema=None) as batch_op:
        batch_op.drop_index('ix_product_inventories_sales_slot_id')
        batch_op.drop_index('ix_product_inventories_product_id')
    op.drop_table('product_inventories')

    with op.batch_alter_table('sales_slots', schema=None) as batch_op:
        batch_op.drop_index('ix_sales_slots_is_active')
        batch_op.drop_index('ix_sales_slots_start_time')
        batch_op.drop_index('ix_sales_slots_start_end')
    op.drop_table('sales_slots')

    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.drop_index('ix_products_name')
    op.drop_table('products')
