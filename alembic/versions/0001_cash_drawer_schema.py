"""cash_drawer_schema

Stores, operators, cash sessions, the movement ledger, sales and the session
audit trail. A store may have at most one open session.

Revision ID: 0001_cash_drawer_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001_cash_drawer_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        'stores',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_stores_name'), 'stores', ['name'], unique=False)

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('full_name', sa.String(200), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('store_id', sa.Uuid(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_users_store_id'), 'users', ['store_id'], unique=False)

    op.create_table(
        'cash_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('store_id', sa.Uuid(), nullable=False),
        sa.Column('opened_by', sa.Uuid(), nullable=False),
        sa.Column('closed_by', sa.Uuid(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('opened_at', sa.DateTime(), nullable=False),
        sa.Column('closed_at', sa.DateTime(), nullable=True),
        _money('initial_cash', nullable=False),
        _money('total_sales_cash'),
        _money('total_sales_card'),
        _money('total_sales_transfer'),
        _money('total_sales_other'),
        _money('total_refunds'),
        _money('total_cash_in'),
        _money('total_cash_out'),
        _money('expected_cash'),
        _money('actual_cash'),
        _money('difference'),
        sa.Column('sales_count', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['opened_by'], ['users.id']),
        sa.ForeignKeyConstraint(['closed_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_cash_sessions_store_id'), 'cash_sessions', ['store_id'], unique=False)
    op.create_index(op.f('ix_cash_sessions_opened_by'), 'cash_sessions', ['opened_by'], unique=False)
    op.create_index(op.f('ix_cash_sessions_closed_by'), 'cash_sessions', ['closed_by'], unique=False)
    op.create_index(op.f('ix_cash_sessions_status'), 'cash_sessions', ['status'], unique=False)
    op.create_index(op.f('ix_cash_sessions_opened_at'), 'cash_sessions', ['opened_at'], unique=False)
    op.create_index(op.f('ix_cash_sessions_closed_at'), 'cash_sessions', ['closed_at'], unique=False)

    # Pre-check for duplicate open sessions before creating the unique index
    conn = op.get_bind()
    duplicates = conn.execute(
        sa.text('''
            SELECT store_id, COUNT(*) AS open_count
            FROM cash_sessions
            WHERE status = 'open'
            GROUP BY store_id
            HAVING COUNT(*) > 1
        ''')
    ).mappings().all()
    if duplicates:
        msg_lines = ['\nMigration aborted: stores with more than one open cash session:']
        for row in duplicates:
            msg_lines.append(f"  store_id={row['store_id']}, open_count={row['open_count']}")
        msg_lines.append('\nClose the extra sessions before re-running the migration.')
        raise RuntimeError('\n'.join(msg_lines))

    # Partial unique index: one open row per store, closed rows unconstrained
    op.create_index(
        'uq_cash_sessions_one_open_per_store',
        'cash_sessions',
        ['store_id'],
        unique=True,
        postgresql_where=sa.text("status = 'open'"),
        sqlite_where=sa.text("status = 'open'"),
    )

    op.create_table(
        'cash_movements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('store_id', sa.Uuid(), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        _money('amount', nullable=False),
        sa.Column('reason', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['created_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("type IN ('deposit', 'withdrawal')", name='ck_cash_movements_type'),
        sa.CheckConstraint('amount > 0', name='ck_cash_movements_amount_positive'),
    )
    op.create_index('ix_cash_movements_store_created', 'cash_movements', ['store_id', 'created_at'], unique=False)
    op.create_index(op.f('ix_cash_movements_created_by'), 'cash_movements', ['created_by'], unique=False)

    op.create_table(
        'sales',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('store_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        _money('total', nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=False),
        sa.Column('profile_id', sa.Uuid(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sales_store_created', 'sales', ['store_id', 'created_at'], unique=False)

    op.create_table(
        'cash_session_audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('session_id', sa.Uuid(), nullable=False),
        sa.Column('changed_by', sa.Uuid(), nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('values', sa.JSON(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['session_id'], ['cash_sessions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_cash_session_audit_logs_session_id'),
        'cash_session_audit_logs',
        ['session_id'],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f('ix_cash_session_audit_logs_session_id'), table_name='cash_session_audit_logs')
    op.drop_table('cash_session_audit_logs')
    op.drop_index('ix_sales_store_created', table_name='sales')
    op.drop_table('sales')
    op.drop_index(op.f('ix_cash_movements_created_by'), table_name='cash_movements')
    op.drop_index('ix_cash_movements_store_created', table_name='cash_movements')
    op.drop_table('cash_movements')
    op.drop_index('uq_cash_sessions_one_open_per_store', table_name='cash_sessions')
    for column in ('closed_at', 'opened_at', 'status', 'closed_by', 'opened_by', 'store_id'):
        op.drop_index(op.f(f'ix_cash_sessions_{column}'), table_name='cash_sessions')
    op.drop_table('cash_sessions')
    op.drop_index(op.f('ix_users_store_id'), table_name='users')
    op.drop_table('users')
    op.drop_index(op.f('ix_stores_name'), table_name='stores')
    op.drop_table('stores')
