"""create users, matches and multiplier_config; seed multiplier table

Revision ID: a1c4e9d2b7f3
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1c4e9d2b7f3'
down_revision = None
branch_labels = None
depends_on = None


MULTIPLIER_ROWS = [
    (1, 1.5, 80), (2, 2.0, 70), (3, 3.0, 60), (4, 5.0, 50),
    (5, 10.0, 40), (6, 20.0, 30), (7, 50.0, 20), (8, 100.0, 10),
]


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    # Databases bootstrapped through GET /setup already have the tables
    existing_tables = set(insp.get_table_names())

    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('wallet_balance', sa.Numeric(10, 2), nullable=False, server_default='100'),
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)

    if 'matches' not in existing_tables:
        op.create_table(
            'matches',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('bet_amount', sa.Numeric(10, 2), nullable=False),
            sa.Column('final_multiplier', sa.Numeric(10, 2), nullable=False, server_default='1'),
            sa.Column('total_hits', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('result', sa.String(length=20), nullable=False, server_default='in_progress'),
            sa.Column('payout', sa.Numeric(10, 2), nullable=False, server_default='0'),
        )
        op.create_index('ix_matches_user_id', 'matches', ['user_id'])

    if 'multiplier_config' not in existing_tables:
        table = op.create_table(
            'multiplier_config',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('hit_number', sa.Integer(), nullable=False, unique=True),
            sa.Column('base_multiplier', sa.Numeric(10, 2), nullable=False),
            sa.Column('hit_probability_percent', sa.Numeric(5, 2), nullable=False),
        )
        op.bulk_insert(table, [
            {'hit_number': n, 'base_multiplier': m, 'hit_probability_percent': p}
            for n, m, p in MULTIPLIER_ROWS
        ])


def downgrade():
    op.drop_table('multiplier_config')
    op.drop_index('ix_matches_user_id', table_name='matches')
    op.drop_table('matches')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
