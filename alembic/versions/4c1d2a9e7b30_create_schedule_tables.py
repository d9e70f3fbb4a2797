"""create schedule tables

Revision ID: 4c1d2a9e7b30
Revises:
Create Date: 2026-10-19 09:12:44.310527

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '4c1d2a9e7b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Templates
    op.create_table(
        'schedule_templates',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('gym_id', sa.String(64), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('coach_ids', sa.JSON(), nullable=False),
        sa.Column('days', sa.JSON(), nullable=False),
        sa.Column('created_by', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.UniqueConstraint('gym_id', 'name', name='uq_schedule_templates_gym_name')
    )
    op.create_index('ix_schedule_templates_gym_id', 'schedule_templates', ['gym_id'])

    # 2. Active schedules (1:1 with templates)
    op.create_table(
        'active_schedules',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('gym_id', sa.String(64), nullable=False),
        sa.Column('template_id', sa.Uuid(), sa.ForeignKey('schedule_templates.id'), nullable=False, unique=True),
        sa.Column('coach_ids', sa.JSON(), nullable=False),
        sa.Column('last_reset_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'))
    )
    op.create_index('ix_active_schedules_gym_id', 'active_schedules', ['gym_id'])

    # 3. Days
    op.create_table(
        'active_schedule_days',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('active_schedule_id', sa.Uuid(), sa.ForeignKey('active_schedules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('active_schedule_id', 'day_of_week', name='uq_active_schedule_days_schedule_dow'),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='ck_active_schedule_days_dow')
    )
    op.create_index('ix_active_schedule_days_active_schedule_id', 'active_schedule_days', ['active_schedule_id'])

    # 4. Timeslots; assigned_count is the capacity guard for join
    op.create_table(
        'active_timeslots',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('day_id', sa.Uuid(), sa.ForeignKey('active_schedule_days.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('assigned_count', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('day_id', 'start_time', name='uq_active_timeslots_day_start'),
        sa.CheckConstraint('capacity >= 1', name='ck_active_timeslots_capacity'),
        sa.CheckConstraint(
            'assigned_count >= 0 AND assigned_count <= capacity',
            name='ck_active_timeslots_within_capacity'
        )
    )
    op.create_index('ix_active_timeslots_day_id', 'active_timeslots', ['day_id'])

    # 5. Memberships
    op.create_table(
        'timeslot_assignments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('timeslot_id', sa.Uuid(), sa.ForeignKey('active_timeslots.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.String(64), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('timeslot_id', 'client_id', name='uq_timeslot_assignments_slot_client')
    )
    op.create_index('ix_timeslot_assignments_timeslot_id', 'timeslot_assignments', ['timeslot_id'])
    op.create_index('ix_timeslot_assignments_client_id', 'timeslot_assignments', ['client_id'])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index('ix_timeslot_assignments_client_id', table_name='timeslot_assignments')
    op.drop_index('ix_timeslot_assignments_timeslot_id', table_name='timeslot_assignments')
    op.drop_table('timeslot_assignments')

    op.drop_index('ix_active_timeslots_day_id', table_name='active_timeslots')
    op.drop_table('active_timeslots')

    op.drop_index('ix_active_schedule_days_active_schedule_id', table_name='active_schedule_days')
    op.drop_table('active_schedule_days')

    op.drop_index('ix_active_schedules_gym_id', table_name='active_schedules')
    op.drop_table('active_schedules')

    op.drop_index('ix_schedule_templates_gym_id', table_name='schedule_templates')
    op.drop_table('schedule_templates')
