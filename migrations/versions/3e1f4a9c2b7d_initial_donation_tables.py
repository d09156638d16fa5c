"""initial donation tables

Revision ID: 3e1f4a9c2b7d
Revises:
Create Date: 2026-10-19 10:12:31.418204
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3e1f4a9c2b7d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('sort_description', sa.Text(), nullable=False),
        sa.Column('donation_amount', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('name', name='uq_categories_name'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='user'),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'donations',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('donor_name', sa.String(), nullable=False),
        sa.Column('donor_email', sa.String(), nullable=False),
        sa.Column('donor_phone', sa.String(), nullable=True),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('category_id', sa.String(length=36), nullable=False),
        sa.Column('item', sa.String(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('base_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('extra_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Pending'),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='Pending'),
        sa.Column('transaction_id', sa.String(length=64), nullable=True),
        sa.Column('payment_details', sa.JSON(), nullable=True),
        sa.Column('failure_reason', sa.Text(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        # constraint names are required for SQLite batch mode
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_donations_user_id', ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], name='fk_donations_category_id'),
    )
    op.create_index('ix_donations_user_id', 'donations', ['user_id'])
    op.create_index('ix_donations_category_id', 'donations', ['category_id'])
    op.create_index('ix_donations_payment_status', 'donations', ['payment_status'])
    op.create_index('ix_donations_transaction_id', 'donations', ['transaction_id'])
    op.create_index('ix_donations_created_at', 'donations', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_donations_created_at', table_name='donations')
    op.drop_index('ix_donations_transaction_id', table_name='donations')
    op.drop_index('ix_donations_payment_status', table_name='donations')
    op.drop_index('ix_donations_category_id', table_name='donations')
    op.drop_index('ix_donations_user_id', table_name='donations')
    op.drop_table('donations')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('categories')
