"""initial_storesync_schema

Revision ID: 3f1c9a7d2e10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c9a7d2e10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'tenants',
        sa.Column('id', sa.TEXT(), nullable=False),
        sa.Column('shop_domain', sa.TEXT(), nullable=False),
        sa.Column('access_token', sa.TEXT(), nullable=True),
        sa.Column('display_name', sa.TEXT(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop_domain', name='uq_tenants_shop_domain'),
    )

    op.create_table(
        'user_stores',
        sa.Column('id', sa.BIGINT(), autoincrement=True, nullable=False),
        sa.Column('subject_id', sa.TEXT(), nullable=False),
        sa.Column('tenant_id', sa.TEXT(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('subject_id', 'tenant_id', name='uq_user_stores_subject_tenant'),
    )
    op.create_index('idx_user_stores_subject', 'user_stores', ['subject_id'])

    op.create_table(
        'customers',
        sa.Column('id', sa.BIGINT(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.TEXT(), nullable=False),
        sa.Column('shopify_customer_id', sa.BIGINT(), nullable=False),
        sa.Column('email', sa.TEXT(), nullable=True),
        sa.Column('first_name', sa.TEXT(), nullable=True),
        sa.Column('last_name', sa.TEXT(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'shopify_customer_id', name='uq_customers_tenant_shopify_id'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.BIGINT(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.TEXT(), nullable=False),
        sa.Column('shopify_product_id', sa.BIGINT(), nullable=False),
        sa.Column('title', sa.TEXT(), nullable=True),
        sa.Column('price', sa.NUMERIC(12, 2), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'shopify_product_id', name='uq_products_tenant_shopify_id'),
    )

    op.create_table(
        'orders',
        sa.Column('id', sa.BIGINT(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.TEXT(), nullable=False),
        sa.Column('shopify_order_id', sa.BIGINT(), nullable=False),
        sa.Column('customer_id', sa.BIGINT(), nullable=True),
        sa.Column('total_price', sa.NUMERIC(12, 2), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'shopify_order_id', name='uq_orders_tenant_shopify_id'),
    )
    op.create_index('idx_orders_tenant_created', 'orders', ['tenant_id', 'created_at'])
    op.create_index('idx_orders_customer', 'orders', ['customer_id'])

    # Append-only; no natural key
    op.create_table(
        'events',
        sa.Column('id', sa.BIGINT(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.TEXT(), nullable=False),
        sa.Column('event_type', sa.TEXT(), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('received_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_events_tenant_type', 'events', ['tenant_id', 'event_type'])


def downgrade() -> None:
    op.drop_index('idx_events_tenant_type', table_name='events')
    op.drop_table('events')
    op.drop_index('idx_orders_customer', table_name='orders')
    op.drop_index('idx_orders_tenant_created', table_name='orders')
    op.drop_table('orders')
    op.drop_table('products')
    op.drop_table('customers')
    op.drop_index('idx_user_stores_subject', table_name='user_stores')
    op.drop_table('user_stores')
    op.drop_table('tenants')
