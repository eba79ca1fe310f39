"""initial order schema

Revision ID: 5a1d0c7e2b41
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '5a1d0c7e2b41'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user_profile',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'vendor_request',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('user_id', sa.String(64), sa.ForeignKey('user_profile.id'), nullable=False),
        sa.Column('business_name', sa.String(150), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('reviewed_by', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_vendor_request_user_id', 'vendor_request', ['user_id'])
    op.create_table(
        'product',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('vendor_id', sa.String(64), sa.ForeignKey('user_profile.id'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('image_url', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_product_vendor_id', 'product', ['vendor_id'])
    op.create_table(
        'cart',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('buyer_id', sa.String(64), sa.ForeignKey('user_profile.id'), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'cart_item',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('cart_id', sa.BigInteger(), sa.ForeignKey('cart.id'), nullable=False),
        sa.Column('product_id', sa.BigInteger(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('display_name', sa.String(200), nullable=True),
        sa.Column('image_ref', sa.String(255), nullable=True),
        sa.Column('added_at', sa.DateTime(), nullable=True),
        sa.Column('last_updated', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('cart_id', 'product_id', name='uq_cart_item_product'),
    )
    op.create_table(
        'order_group',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('buyer_id', sa.String(64), sa.ForeignKey('user_profile.id'), nullable=False),
        sa.Column('idempotency_key', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('buyer_id', 'idempotency_key', name='uq_order_group_idempotency'),
    )
    op.create_table(
        'order',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('group_id', sa.BigInteger(), sa.ForeignKey('order_group.id'), nullable=False),
        sa.Column('buyer_id', sa.String(64), sa.ForeignKey('user_profile.id'), nullable=False),
        sa.Column('vendor_id', sa.String(64), sa.ForeignKey('user_profile.id'), nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('payment_method', sa.String(10), nullable=False),
        sa.Column('payment_status', sa.String(20), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('shipping_address', sa.JSON(), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('gateway_payment_id', sa.String(255), nullable=True),
        sa.Column('settled_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('settled_currency', sa.String(10), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_order_vendor_status', 'order', ['vendor_id', 'status'])
    op.create_index('ix_order_buyer_created', 'order', ['buyer_id', 'created_at'])
    op.create_table(
        'order_item',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('order_id', sa.BigInteger(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('product_id', sa.BigInteger(), nullable=False),
        sa.Column('vendor_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
    )
    op.create_table(
        'order_status_log',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('order_id', sa.BigInteger(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('from_status', sa.String(30), nullable=True),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('updated_by', sa.String(64), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'payment_event',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('gateway_payment_id', sa.String(255), nullable=False),
        sa.Column('gateway_event_id', sa.String(255), nullable=True),
        sa.Column('order_id', sa.BigInteger(), sa.ForeignKey('order.id'), nullable=False),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('outcome', sa.String(20), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('currency', sa.String(10), nullable=True),
        sa.Column('applied', sa.Boolean(), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('gateway_payment_id', 'outcome', name='uq_payment_event_outcome'),
    )
    op.create_table(
        'notification',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('recipient_role', sa.String(10), nullable=False),
        sa.Column('recipient_id', sa.String(64), nullable=True),
        sa.Column('related_id', sa.String(64), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notification_recipient', 'notification', ['recipient_role', 'recipient_id', 'is_read'])


def downgrade():
    op.drop_index('ix_notification_recipient', table_name='notification')
    op.drop_table('notification')
    op.drop_table('payment_event')
    op.drop_table('order_status_log')
    op.drop_table('order_item')
    op.drop_index('ix_order_buyer_created', table_name='order')
    op.drop_index('ix_order_vendor_status', table_name='order')
    op.drop_table('order')
    op.drop_table('order_group')
    op.drop_table('cart_item')
    op.drop_table('cart')
    op.drop_index('ix_product_vendor_id', table_name='product')
    op.drop_table('product')
    op.drop_index('ix_vendor_request_user_id', table_name='vendor_request')
    op.drop_table('vendor_request')
    op.drop_table('user_profile')
