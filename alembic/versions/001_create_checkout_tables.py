"""Create catalog, cart, order and order sequence tables.

Revision ID: 001
Revises:
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog, cart, order and order sequence tables."""
    # Products table
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('sale_price', sa.Integer(), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='INR'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active', index=True),
        sa.Column('total_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('total_stock >= 0', name='ck_products_total_stock'),
    )

    # Product variants table
    op.create_table(
        'product_variants',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('product_id', sa.String(36),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('size', sa.String(50), nullable=False),
        sa.Column('color', sa.String(50), nullable=False),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('price', sa.Integer(), nullable=True),
        sa.CheckConstraint('stock >= 0', name='ck_product_variants_stock'),
    )

    # Variant lookup by (product, size, color)
    op.create_unique_constraint(
        'uq_product_variants_selector',
        'product_variants',
        ['product_id', 'size', 'color'],
    )

    # Carts table
    op.create_table(
        'carts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(100), nullable=False, unique=True),
        sa.Column('items', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('coupon_code', sa.String(50), nullable=True),
        sa.Column('coupon_percent', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Orders table
    op.create_table(
        'orders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_number', sa.String(32), nullable=False, unique=True),
        sa.Column('user_id', sa.String(100), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
        sa.Column('payment_status', sa.String(20), nullable=False, index=True),
        sa.Column('items', postgresql.JSONB(), nullable=False),
        sa.Column('shipping_address', postgresql.JSONB(), nullable=False),
        sa.Column('billing_address', postgresql.JSONB(), nullable=False),
        sa.Column('pricing', postgresql.JSONB(), nullable=False),
        sa.Column('total', sa.Integer(), nullable=False),
        sa.Column('payment', postgresql.JSONB(), nullable=False),
        sa.Column('status_history', postgresql.JSONB(), nullable=False),
        sa.Column('shipping', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('cancellation', postgresql.JSONB(), nullable=True),
        sa.Column('customer_note', sa.Text(), nullable=True),
        sa.Column('internal_note', sa.Text(), nullable=True),
        sa.Column('stock_restored_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Cancelled orders still waiting for their stock to be returned
    op.create_index(
        'ix_orders_pending_restore',
        'orders',
        ['created_at'],
        postgresql_where=sa.text("status = 'cancelled' AND stock_restored_at IS NULL"),
    )

    # Daily order number sequence
    op.create_table(
        'order_sequences',
        sa.Column('day', sa.Date(), primary_key=True),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
    )


def downgrade() -> None:
    """Drop checkout tables."""
    op.drop_table('order_sequences')
    op.drop_index('ix_orders_pending_restore', table_name='orders')
    op.drop_table('orders')
    op.drop_table('carts')
    op.drop_table('product_variants')
    op.drop_table('products')
