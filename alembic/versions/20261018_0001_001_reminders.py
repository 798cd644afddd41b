"""Reminders table.

Revision ID: 001
Revises: None
Create Date: 2026-10-18

Creates the reminders table:
- one row per occurrence, previous_occurrence_id links a series
- status / recurrence / method enums (stored by member name, as SQLModel maps them)
- indexes for the due scan (status, scheduled_for) and owner listing
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'reminders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=2000), nullable=True),
        sa.Column('phone_number', sa.String(length=16), nullable=False),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'SENT', 'FAILED', name='reminderstatus'),
            nullable=False,
            server_default='PENDING',
        ),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            'recurrence_type',
            sa.Enum('NONE', 'DAILY', 'WEEKLY', 'MONTHLY', name='recurrencetype'),
            nullable=False,
            server_default='NONE',
        ),
        sa.Column('recurrence_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'notification_method',
            sa.Enum('SMS', 'CALL', name='notificationmethod'),
            nullable=False,
            server_default='SMS',
        ),
        sa.Column('previous_occurrence_id', sa.Uuid(), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('failure_reason', sa.String(length=500), nullable=True),
        sa.Column('provider_message_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_reminders_owner_id', 'reminders', ['owner_id'])
    op.create_index('ix_reminders_scheduled_for', 'reminders', ['scheduled_for'])
    op.create_index('ix_reminders_status', 'reminders', ['status'])
    op.create_index('ix_reminders_previous_occurrence_id', 'reminders', ['previous_occurrence_id'])


def downgrade() -> None:
    op.drop_index('ix_reminders_previous_occurrence_id', table_name='reminders')
    op.drop_index('ix_reminders_status', table_name='reminders')
    op.drop_index('ix_reminders_scheduled_for', table_name='reminders')
    op.drop_index('ix_reminders_owner_id', table_name='reminders')
    op.drop_table('reminders')
    sa.Enum(name='notificationmethod').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='recurrencetype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='reminderstatus').drop(op.get_bind(), checkfirst=True)
