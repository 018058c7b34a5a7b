"""initial pharmacy schema

Revision ID: 3c1f9a7e2b10
Revises:
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f9a7e2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

movement_type = sa.Enum('IN', 'OUT', name='movementtype')
alert_kind = sa.Enum('LOW_STOCK', 'EXPIRY_SOON', 'EXPIRED', name='alertkind')
sales_order_status = sa.Enum('PENDING', 'COMPLETED', 'CANCELLED', name='salesorderstatus')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_categories_id', 'categories', ['id'])

    op.create_table(
        'medicines',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('categories.id'), nullable=True),
        sa.Column('images', sa.JSON(), nullable=False),
        *_timestamps(),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_medicines_id', 'medicines', ['id'])
    op.create_index('ix_medicines_expiry_date', 'medicines', ['expiry_date'])
    op.create_index('ix_medicines_active', 'medicines', ['active'])

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('medicine_id', sa.Integer(), nullable=False),
        sa.Column('medicine_name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('movement_type', movement_type, nullable=False),
        sa.Column('total_after', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_stock_movements_id', 'stock_movements', ['id'])
    op.create_index('ix_stock_movements_medicine_id', 'stock_movements', ['medicine_id'])

    op.create_table(
        'alerts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('medicine_id', sa.Integer(), nullable=False),
        sa.Column('medicine_name', sa.String(), nullable=False),
        sa.Column('kind', alert_kind, nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_alerts_id', 'alerts', ['id'])
    op.create_index('ix_alerts_medicine_id', 'alerts', ['medicine_id'])
    op.create_index('ix_alerts_medicine_kind_read', 'alerts', ['medicine_id', 'kind', 'read'])

    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('cpf', sa.String(14), nullable=False, unique=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_clients_id', 'clients', ['id'])

    op.create_table(
        'sales_orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('status', sales_order_status, nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_sales_orders_id', 'sales_orders', ['id'])
    op.create_index('ix_sales_orders_client_id', 'sales_orders', ['client_id'])

    op.create_table(
        'sales_order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sales_order_id', sa.Integer(), sa.ForeignKey('sales_orders.id'), nullable=False),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False),
        sa.Column('medicine_name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
    )
    op.create_index('ix_sales_order_items_id', 'sales_order_items', ['id'])
    op.create_index('ix_sales_order_items_medicine_id', 'sales_order_items', ['medicine_id'])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('entity_type', sa.String(), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_audit_log_id', 'audit_log', ['id'])
    op.create_index('ix_audit_log_action', 'audit_log', ['action'])
    op.create_index('ix_audit_log_entity_type', 'audit_log', ['entity_type'])


def downgrade() -> None:
    for table in ('audit_log', 'sales_order_items', 'sales_orders', 'clients', 'alerts',
                  'stock_movements', 'medicines', 'categories', 'users'):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_type in (sales_order_status, alert_kind, movement_type):
        enum_type.drop(bind, checkfirst=True)
