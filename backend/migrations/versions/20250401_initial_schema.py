"""Initial schema: tenancy, users, transfers, renditions, sales, goals, bonuses, alerts

Revision ID: 20250401_initial
Revises:
Create Date: 2025-04-01

This migration adds:
1. Companies and business units
2. Users (role + optional unit)
3. Transfers, renditions and rendition expenses
4. Sales with payment breakdown
5. Goals and bonuses (one per unit/month)
6. Alerts
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20250401_initial'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False)


def _updated_at():
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False)


def upgrade():
    # ==========================================================================
    # 1. TENANCY
    # ==========================================================================
    op.create_table('companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('companies', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_companies_is_active'), ['is_active'], unique=False)

    op.create_table('business_units',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'name', name='uq_business_units_company_name'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('business_units', schema=None) as batch_op:
        batch_op.create_index('ix_business_units_company_id', ['company_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_business_units_is_active'), ['is_active'], unique=False)

    # ==========================================================================
    # 2. USERS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='cashier'),
        sa.Column('business_unit_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        _created_at(),
        sa.ForeignKeyConstraint(['business_unit_id'], ['business_units.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_username'), ['username'], unique=False)
        batch_op.create_index(batch_op.f('ix_users_role'), ['role'], unique=False)

    # ==========================================================================
    # 3. TRANSFERS / RENDITIONS
    # ==========================================================================
    op.create_table('transfers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('from_user_id', sa.Integer(), nullable=True),
        sa.Column('to_business_unit_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('week_identifier', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('amount > 0', name='ck_transfers_amount_positive'),
        sa.ForeignKeyConstraint(['from_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['to_business_unit_id'], ['business_units.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('transfers', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_transfers_from_user_id'), ['from_user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_transfers_to_business_unit_id'), ['to_business_unit_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_transfers_status'), ['status'], unique=False)
        batch_op.create_index('ix_transfers_unit_week', ['to_business_unit_id', 'week_identifier'], unique=False)

    op.create_table('renditions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transfer_id', sa.Integer(), nullable=False),
        sa.Column('business_unit_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('week_identifier', sa.String(length=100), nullable=False),
        sa.Column('transfer_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total_expenses', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('remaining_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by_user_id', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['transfer_id'], ['transfers.id'], ),
        sa.ForeignKeyConstraint(['business_unit_id'], ['business_units.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['reviewed_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transfer_id', name='uq_renditions_transfer'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('renditions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_renditions_business_unit_id'), ['business_unit_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_renditions_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_renditions_status'), ['status'], unique=False)
        batch_op.create_index('ix_renditions_unit_status', ['business_unit_id', 'status'], unique=False)

    op.create_table('rendition_expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('rendition_id', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=False, server_default='other'),
        sa.Column('provider', sa.String(length=255), nullable=True),
        sa.Column('provider_type', sa.String(length=100), nullable=True),
        sa.Column('payment_method', sa.String(length=50), nullable=False, server_default='efectivo'),
        sa.Column('document_type', sa.String(length=20), nullable=False, server_default='boleta'),
        sa.Column('document_number', sa.String(length=100), nullable=True),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('expense_date', sa.Date(), nullable=True),
        _created_at(),
        sa.CheckConstraint('amount > 0', name='ck_rendition_expenses_amount_positive'),
        sa.ForeignKeyConstraint(['rendition_id'], ['renditions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('rendition_expenses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_rendition_expenses_rendition_id'), ['rendition_id'], unique=False)

    # ==========================================================================
    # 4. SALES
    # ==========================================================================
    op.create_table('sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_unit_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('sale_date', sa.Date(), nullable=False),
        sa.Column('cash_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('card_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('transfer_amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        _created_at(),
        sa.CheckConstraint('amount > 0', name='ck_sales_amount_positive'),
        sa.ForeignKeyConstraint(['business_unit_id'], ['business_units.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sales', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sales_business_unit_id'), ['business_unit_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sales_sale_date'), ['sale_date'], unique=False)
        batch_op.create_index('ix_sales_unit_date', ['business_unit_id', 'sale_date'], unique=False)

    # ==========================================================================
    # 5. GOALS / BONUSES
    # ==========================================================================
    op.create_table('goals',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_unit_id', sa.Integer(), nullable=False),
        sa.Column('month_year', sa.String(length=7), nullable=False),
        sa.Column('target_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('bonus_percentage', sa.Numeric(precision=5, scale=2), nullable=False, server_default='5'),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint('target_amount > 0', name='ck_goals_target_positive'),
        sa.ForeignKeyConstraint(['business_unit_id'], ['business_units.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('business_unit_id', 'month_year', name='uq_goals_unit_month'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('goals', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_goals_business_unit_id'), ['business_unit_id'], unique=False)

    op.create_table('bonuses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_unit_id', sa.Integer(), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('goal_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('actual_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('bonus_percentage', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('percentage_achieved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('calculated_by_user_id', sa.Integer(), nullable=True),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by_user_id', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_by_user_id', sa.Integer(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['business_unit_id'], ['business_units.id'], ),
        sa.ForeignKeyConstraint(['calculated_by_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['approved_by_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['paid_by_user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('business_unit_id', 'month', name='uq_bonuses_unit_month'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('bonuses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_bonuses_business_unit_id'), ['business_unit_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_bonuses_month'), ['month'], unique=False)
        batch_op.create_index(batch_op.f('ix_bonuses_status'), ['status'], unique=False)

    # ==========================================================================
    # 6. ALERTS
    # ==========================================================================
    op.create_table('alerts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='info'),
        sa.Column('business_unit_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='0'),
        _created_at(),
        sa.ForeignKeyConstraint(['business_unit_id'], ['business_units.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('alerts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_alerts_business_unit_id'), ['business_unit_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_alerts_user_id'), ['user_id'], unique=False)
        batch_op.create_index('ix_alerts_unit_read', ['business_unit_id', 'is_read'], unique=False)


def downgrade():
    # Drop tables in reverse order of creation (respect foreign keys)
    op.drop_table('alerts')
    op.drop_table('bonuses')
    op.drop_table('goals')
    op.drop_table('sales')
    op.drop_table('rendition_expenses')
    op.drop_table('renditions')
    op.drop_table('transfers')
    op.drop_table('users')
    op.drop_table('business_units')
    op.drop_table('companies')
