"""create reminders table

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:01.000000

"""
from typing import Sequence, Union

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'reminders',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('problem_url', sa.Text(), nullable=False),
        sa.Column('problem_title', sa.Text(), nullable=True),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=False),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='Asia/Kolkata'),
        sa.Column('state', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivery_error', sa.Text(), nullable=True),
    )
    op.create_index('ix_reminders_state_scheduled_for', 'reminders', ['state', 'scheduled_for'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_reminders_state_scheduled_for', table_name='reminders')
    op.drop_table('reminders')
