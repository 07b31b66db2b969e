"""Initial distribution schema.

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01

Users with ranks and referrers, distribution configuration, trading results
with per-user distribution markers, ledger and audit tables.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20260101_000001'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.DECIMAL(precision=18, scale=8)
PERCENT = sa.DECIMAL(precision=8, scale=4)


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=255), nullable=True),
        sa.Column('balance', MONEY, nullable=False, server_default='0'),
        sa.Column(
            'rank',
            sa.String(length=20),
            nullable=False,
            server_default='STARTER',
            comment='Derived from balance; STARTER..VVIP'
        ),
        sa.Column('referrer_id', sa.Integer(), nullable=True),
        sa.Column(
            'version',
            sa.Integer(),
            nullable=False,
            server_default='1',
            comment='Bumped on every balance/rank write'
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['referrer_id'], ['users.id'], ondelete='SET NULL'
        ),
    )
    op.create_index('ix_users_username', 'users', ['username'])
    op.create_index('ix_users_balance', 'users', ['balance'])
    op.create_index('ix_users_rank', 'users', ['rank'])
    op.create_index('ix_users_referrer_id', 'users', ['referrer_id'])

    op.create_table(
        'rank_tier_configs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tier', sa.String(length=20), nullable=False),
        sa.Column('display_name', sa.String(length=50), nullable=False),
        sa.Column('min_balance', MONEY, nullable=False),
        sa.Column(
            'max_balance',
            MONEY,
            nullable=True,
            comment='Exclusive upper bound; NULL = unbounded'
        ),
        sa.Column('bonus_levels', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('profit_share_user', PERCENT, nullable=False),
        sa.Column('profit_share_company', PERCENT, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_rank_tier_configs_tier', 'rank_tier_configs', ['tier'], unique=True
    )
    op.create_index(
        'ix_rank_tier_configs_is_active', 'rank_tier_configs', ['is_active']
    )

    op.create_table(
        'system_settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_system_settings_key', 'system_settings', ['key'], unique=True
    )

    op.create_table(
        'trading_results',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('trading_date', sa.Date(), nullable=False),
        sa.Column('profit_percent', PERCENT, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'config_version',
            sa.String(length=64),
            nullable=True,
            comment='Fingerprint of the config the run is pinned to'
        ),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_trading_results_trading_date',
        'trading_results',
        ['trading_date'],
        unique=True,
    )
    op.create_index(
        'ix_trading_results_processed_at', 'trading_results', ['processed_at']
    )

    op.create_table(
        'distribution_markers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('trading_result_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            sa.String(length=20),
            nullable=False,
            server_default='pending',
            comment='pending, completed'
        ),
        sa.Column('base_balance', MONEY, nullable=False),
        sa.Column('profit_amount', MONEY, nullable=False, server_default='0'),
        sa.Column('bonus_total', MONEY, nullable=False, server_default='0'),
        sa.Column(
            'bonus_walk_aborted',
            sa.Boolean(),
            nullable=False,
            server_default=sa.false()
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['trading_result_id'], ['trading_results.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.UniqueConstraint(
            'trading_result_id',
            'user_id',
            name='uq_distribution_marker_result_user'
        ),
    )
    op.create_index(
        'ix_distribution_markers_trading_result_id',
        'distribution_markers',
        ['trading_result_id'],
    )
    op.create_index(
        'ix_distribution_markers_user_id', 'distribution_markers', ['user_id']
    )
    op.create_index(
        'ix_distribution_markers_status', 'distribution_markers', ['status']
    )

    op.create_table(
        'profit_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('trading_result_id', sa.Integer(), nullable=False),
        sa.Column('trading_date', sa.Date(), nullable=False),
        sa.Column('profit_percent', PERCENT, nullable=False),
        sa.Column('base_balance', MONEY, nullable=False),
        sa.Column('rank', sa.String(length=20), nullable=False),
        sa.Column('user_share_percent', PERCENT, nullable=False),
        sa.Column('profit_amount', MONEY, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['trading_result_id'], ['trading_results.id']),
    )
    op.create_index('ix_profit_history_user_id', 'profit_history', ['user_id'])
    op.create_index(
        'ix_profit_history_trading_result_id',
        'profit_history',
        ['trading_result_id'],
    )
    op.create_index(
        'ix_profit_history_trading_date', 'profit_history', ['trading_date']
    )

    op.create_table(
        'bonus_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('source_user_id', sa.Integer(), nullable=False),
        sa.Column('trading_result_id', sa.Integer(), nullable=False),
        sa.Column('trading_date', sa.Date(), nullable=False),
        sa.Column(
            'bonus_type',
            sa.String(length=50),
            nullable=False,
            server_default='NETWORK_LEVEL_BONUS'
        ),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('rate', PERCENT, nullable=False),
        sa.Column(
            'calculated_from',
            MONEY,
            nullable=False,
            comment='Company portion the rate was applied to'
        ),
        sa.Column('bonus_amount', MONEY, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['source_user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['trading_result_id'], ['trading_results.id']),
    )
    op.create_index('ix_bonus_history_user_id', 'bonus_history', ['user_id'])
    op.create_index(
        'ix_bonus_history_source_user_id', 'bonus_history', ['source_user_id']
    )
    op.create_index(
        'ix_bonus_history_trading_result_id',
        'bonus_history',
        ['trading_result_id'],
    )
    op.create_index(
        'ix_bonus_history_trading_date', 'bonus_history', ['trading_date']
    )

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column(
            'status',
            sa.String(length=20),
            nullable=False,
            server_default='COMPLETED'
        ),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('trading_result_id', sa.Integer(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['trading_result_id'], ['trading_results.id']),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_type', 'transactions', ['type'])
    op.create_index(
        'ix_transactions_trading_result_id',
        'transactions',
        ['trading_result_id'],
    )

    op.create_table(
        'admin_actions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('admin_id', sa.Integer(), nullable=True),
        sa.Column('action_type', sa.String(length=50), nullable=False),
        sa.Column('target_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_actions_admin_id', 'admin_actions', ['admin_id'])
    op.create_index(
        'ix_admin_actions_action_type', 'admin_actions', ['action_type']
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('admin_actions')
    op.drop_table('transactions')
    op.drop_table('bonus_history')
    op.drop_table('profit_history')
    op.drop_table('distribution_markers')
    op.drop_table('trading_results')
    op.drop_table('system_settings')
    op.drop_table('rank_tier_configs')
    op.drop_table('users')
