"""Initial storefront schema: profiles, catalog, inventory, orders and payments

Revision ID: 0001_initial_storefront_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '0001_initial_storefront_schema'
down_revision = None
branch_labels = None
depends_on = None


def timestamps(updated=True):
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)
        )
    return columns


def money(name, nullable=False, default=None):
    return sa.Column(
        name,
        sa.Numeric(12, 2),
        server_default=default,
        nullable=nullable
    )


def upgrade():
    op.create_table('profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('avatar_url', sa.String(length=500), nullable=True),
        sa.Column('user_type', sa.String(length=30), server_default='individual', nullable=False),
        sa.Column('account_status', sa.String(length=30), server_default='active', nullable=False),
        sa.Column('is_seller', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_email_verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_phone_verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('login_count', sa.Integer(), server_default='0', nullable=False),
        *timestamps(),
        sa.CheckConstraint(
            "user_type IN ('individual', 'company_buyer', 'wholesaler', 'retailer', 'admin')",
            name='profiles_user_type_check'
        ),
        sa.CheckConstraint(
            "account_status IN ('active', 'suspended', 'pending_verification')",
            name='profiles_account_status_check'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('profiles_email_idx', 'profiles', ['email'])

    op.create_table('categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('parent_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('icon', sa.String(length=50), nullable=True),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        *timestamps(updated=False),
        sa.ForeignKeyConstraint(['parent_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )

    op.create_table('products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('seller_id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=220), nullable=False),
        sa.Column('short_description', sa.String(length=500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('specifications', postgresql.JSONB(), nullable=True),
        sa.Column('product_type', sa.String(length=20), server_default='physical', nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=True),
        money('cost_price', default='0'),
        money('selling_price'),
        money('compare_at_price', nullable=True),
        sa.Column('tax_rate', sa.Numeric(5, 2), server_default='18', nullable=False),
        sa.Column('product_status', sa.String(length=30), server_default='draft', nullable=False),
        sa.Column('is_featured', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('rating', sa.Numeric(3, 2), nullable=True),
        sa.Column('review_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('view_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('purchase_count', sa.Integer(), server_default='0', nullable=False),
        *timestamps(),
        sa.CheckConstraint('selling_price >= 0', name='products_selling_price_check'),
        sa.CheckConstraint(
            "product_status IN ('draft', 'active', 'inactive', 'out_of_stock', 'discontinued')",
            name='products_status_check'
        ),
        sa.CheckConstraint("product_type IN ('physical', 'digital')", name='products_type_check'),
        sa.ForeignKeyConstraint(['seller_id'], ['profiles.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )
    op.create_index('products_status_idx', 'products', ['product_status'])

    op.create_table('product_images',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=False),
        sa.Column('alt_text', sa.String(length=200), nullable=True),
        sa.Column('is_primary', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        *timestamps(updated=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('inventory',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('reserved_quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('low_stock_threshold', sa.Integer(), server_default='10', nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('quantity >= 0', name='inventory_quantity_check'),
        sa.CheckConstraint('reserved_quantity >= 0', name='inventory_reserved_nonnegative_check'),
        sa.CheckConstraint('reserved_quantity <= quantity', name='inventory_reserved_le_quantity_check'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', name='inventory_product_id_key')
    )

    op.create_table('orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=30), nullable=False),
        sa.Column('profile_id', sa.Uuid(), nullable=False),
        sa.Column('order_type', sa.String(length=30), server_default='individual', nullable=False),
        sa.Column('shipping_address_snapshot', postgresql.JSONB(), nullable=True),
        sa.Column('billing_address_snapshot', postgresql.JSONB(), nullable=True),
        money('subtotal'),
        money('discount_amount', default='0'),
        money('tax_amount', default='0'),
        money('shipping_amount', default='0'),
        money('total_amount'),
        sa.Column('order_status', sa.String(length=30), server_default='pending', nullable=False),
        sa.Column('payment_status', sa.String(length=30), server_default='pending', nullable=False),
        sa.Column('customer_note', sa.Text(), nullable=True),
        sa.Column('admin_note', sa.Text(), nullable=True),
        sa.Column('tracking_number', sa.String(length=100), nullable=True),
        sa.Column('courier_company', sa.String(length=100), nullable=True),
        sa.Column('estimated_delivery', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.CheckConstraint('total_amount >= 0', name='orders_total_amount_check'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number')
    )
    op.create_index('orders_profile_id_idx', 'orders', ['profile_id'])
    op.create_index('orders_created_at_idx', 'orders', ['created_at'])

    op.create_table('order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=True),
        sa.Column('seller_id', sa.Uuid(), nullable=True),
        sa.Column('product_name', sa.String(length=200), nullable=False),
        sa.Column('product_sku', sa.String(length=100), nullable=True),
        sa.Column('product_image_url', sa.String(length=500), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        money('unit_price'),
        money('cost_price', default='0'),
        money('discount_amount', default='0'),
        money('tax_amount', default='0'),
        money('total_price'),
        sa.Column('item_type', sa.String(length=20), server_default='physical', nullable=False),
        sa.Column('fulfillment_status', sa.String(length=30), server_default='pending', nullable=False),
        *timestamps(),
        sa.CheckConstraint('quantity > 0', name='order_items_quantity_check'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['seller_id'], ['profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('order_items_order_id_idx', 'order_items', ['order_id'])

    op.create_table('payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('profile_id', sa.Uuid(), nullable=False),
        sa.Column('payment_method', sa.String(length=50), server_default='razorpay', nullable=False),
        sa.Column('payment_gateway', sa.String(length=50), server_default='razorpay', nullable=False),
        sa.Column('gateway_order_id', sa.String(length=100), nullable=True),
        sa.Column('gateway_payment_id', sa.String(length=100), nullable=True),
        sa.Column('gateway_signature', sa.String(length=200), nullable=True),
        money('amount'),
        sa.Column('currency', sa.String(length=10), server_default='INR', nullable=False),
        sa.Column('payment_status', sa.String(length=30), server_default='pending', nullable=False),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['profile_id'], ['profiles.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('payments_gateway_order_id_idx', 'payments', ['gateway_order_id'])


def downgrade():
    op.drop_index('payments_gateway_order_id_idx', table_name='payments')
    op.drop_table('payments')
    op.drop_index('order_items_order_id_idx', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('orders_created_at_idx', table_name='orders')
    op.drop_index('orders_profile_id_idx', table_name='orders')
    op.drop_table('orders')
    op.drop_table('inventory')
    op.drop_table('product_images')
    op.drop_index('products_status_idx', table_name='products')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_index('profiles_email_idx', table_name='profiles')
    op.drop_table('profiles')
