from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'addresses',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('address_line1', sa.String(length=200), nullable=False),
        sa.Column('address_line2', sa.String(length=200), nullable=True),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('county', sa.String(length=100), nullable=True),
        sa.Column('postcode', sa.String(length=20), nullable=False),
        sa.UniqueConstraint(
            'address_line1', 'address_line2', 'city', 'county', 'postcode',
            name='uq_addresses_fields',
            postgresql_nulls_not_distinct=True,
        ),
    )
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=100), nullable=True),
        sa.Column('join_date', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('avatar', sa.String(length=500), nullable=True),
        sa.Column('billing_address_id', sa.Integer, sa.ForeignKey('addresses.id'), nullable=True),
        sa.Column('shipping_address_id', sa.Integer, sa.ForeignKey('addresses.id'), nullable=True),
    )
    op.create_index('ix_customers_username', 'customers', ['username'], unique=True)
    op.create_index('ix_customers_email', 'customers', ['email'], unique=True)

    op.create_table(
        'oauth_profiles',
        sa.Column('customer_id', sa.Integer, sa.ForeignKey('customers.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('auth_id', sa.String(length=200), nullable=False),
        sa.Column('provider', sa.String(length=50), nullable=False),
        sa.UniqueConstraint('auth_id', 'provider', name='uq_oauth_identity'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer, nullable=False, server_default='0'),
        sa.Column('category_name', sa.String(length=100), nullable=False),
        sa.Column('supplier_name', sa.String(length=100), nullable=False),
        sa.Column('thumbnail', sa.String(length=500), nullable=True),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
    )
    op.create_index('ix_products_category_name', 'products', ['category_name'])
    op.create_index('ix_products_supplier_name', 'products', ['supplier_name'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('customer_id', sa.Integer, sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('billing_address_id', sa.Integer, sa.ForeignKey('addresses.id'), nullable=True),
        sa.Column('shipping_address_id', sa.Integer, sa.ForeignKey('addresses.id'), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])

    op.create_table(
        'order_items',
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='RESTRICT'), primary_key=True),
        sa.Column('quantity', sa.Integer, nullable=False),
    )

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('customer_id', sa.Integer, sa.ForeignKey('customers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('body', sa.Text, nullable=False),
        sa.Column('rating', sa.Integer, nullable=False),
        sa.Column('recommend', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_customer_id', 'reviews', ['customer_id'])
    op.create_index('ix_reviews_product_id', 'reviews', ['product_id'])

    op.create_table(
        'cart_items',
        sa.Column('customer_id', sa.Integer, sa.ForeignKey('customers.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('quantity', sa.Integer, nullable=False, server_default='1'),
    )
    op.create_table(
        'wishlist_items',
        sa.Column('customer_id', sa.Integer, sa.ForeignKey('customers.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='CASCADE'), primary_key=True),
    )

def downgrade():
    op.drop_table('wishlist_items')
    op.drop_table('cart_items')
    op.drop_index('ix_reviews_product_id', table_name='reviews')
    op.drop_index('ix_reviews_customer_id', table_name='reviews')
    op.drop_table('reviews')
    op.drop_table('order_items')
    op.drop_index('ix_orders_customer_id', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_products_supplier_name', table_name='products')
    op.drop_index('ix_products_category_name', table_name='products')
    op.drop_table('products')
    op.drop_table('oauth_profiles')
    op.drop_index('ix_customers_email', table_name='customers')
    op.drop_index('ix_customers_username', table_name='customers')
    op.drop_table('customers')
    op.drop_table('addresses')
