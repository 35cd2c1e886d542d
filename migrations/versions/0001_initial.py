"""initial tables

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table('participant',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('given_name', sa.String(length=120), nullable=False),
        sa.Column('surname', sa.String(length=120), nullable=False),
        sa.Column('is_captain', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('availability_restriction', sa.String(length=32), nullable=False, server_default='sin_restriccion'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_participant_surname', 'participant', ['surname'])

    op.create_table('territory',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('number', sa.String(length=20), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )
    op.create_index('ix_territory_number', 'territory', ['number'], unique=True)

    op.create_table('meeting_point',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('maps_url', sa.String(length=500), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )

    op.create_table('time_slot',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('time', sa.Time(), nullable=False),
        sa.Column('order_no', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )
    op.create_index('ix_timeslot_order_no', 'time_slot', ['order_no'])

    op.create_table('preaching_group',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('number', sa.Integer(), nullable=False, unique=True),
        sa.Column('name', sa.String(length=120), nullable=True),
    )

    op.create_table('schedule_entry',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_slot_id', sa.Integer(), sa.ForeignKey('time_slot.id', ondelete='SET NULL'), nullable=True),
        sa.Column('meeting_point_id', sa.Integer(), sa.ForeignKey('meeting_point.id', ondelete='SET NULL'), nullable=True),
        sa.Column('territory_id', sa.Integer(), sa.ForeignKey('territory.id', ondelete='SET NULL'), nullable=True),
        sa.Column('territory_ids', sa.JSON(), nullable=True),
        sa.Column('captain_id', sa.Integer(), sa.ForeignKey('participant.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_special_message', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('special_message_text', sa.Text(), nullable=True),
        sa.Column('full_day_span', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('is_by_group', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('group_assignments', sa.JSON(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_schedule_entry_date', 'schedule_entry', ['date'])
    op.create_index('ix_schedule_entry_captain_id', 'schedule_entry', ['captain_id'])
    op.create_index('ix_entry_date_slot', 'schedule_entry', ['date', 'time_slot_id'])

    op.create_table('fixed_assignment',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('time_slot_id', sa.Integer(), sa.ForeignKey('time_slot.id', ondelete='CASCADE'), nullable=False),
        sa.Column('captain_id', sa.Integer(), sa.ForeignKey('participant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('day_of_week', 'time_slot_id', name='uq_fixed_day_slot'),
    )

    op.create_table('captain_availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('captain_id', sa.Integer(), sa.ForeignKey('participant.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('block', sa.String(length=16), nullable=False, server_default='ambos'),
        sa.UniqueConstraint('captain_id', 'day_of_week', name='uq_availability_captain_day'),
    )
    op.create_index('ix_captain_availability_captain_id', 'captain_availability', ['captain_id'])

    op.create_table('special_day',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('block_type', sa.String(length=16), nullable=False, server_default='completo'),
        sa.Column('color', sa.String(length=16), nullable=False, server_default='#1a365d'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )
    op.create_index('ix_special_day_date', 'special_day', ['date'])

    op.create_table('extra_message',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('color', sa.String(length=16), nullable=False, server_default='#2c5282'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
    )
    op.create_index('ix_extra_message_date', 'extra_message', ['date'])

    op.create_table('system_setting',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(length=100), nullable=False, unique=True),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

def downgrade():
    op.drop_table('system_setting')
    op.drop_index('ix_extra_message_date', table_name='extra_message')
    op.drop_table('extra_message')
    op.drop_index('ix_special_day_date', table_name='special_day')
    op.drop_table('special_day')
    op.drop_index('ix_captain_availability_captain_id', table_name='captain_availability')
    op.drop_table('captain_availability')
    op.drop_table('fixed_assignment')
    op.drop_index('ix_entry_date_slot', table_name='schedule_entry')
    op.drop_index('ix_schedule_entry_captain_id', table_name='schedule_entry')
    op.drop_index('ix_schedule_entry_date', table_name='schedule_entry')
    op.drop_table('schedule_entry')
    op.drop_table('preaching_group')
    op.drop_index('ix_timeslot_order_no', table_name='time_slot')
    op.drop_table('time_slot')
    op.drop_table('meeting_point')
    op.drop_index('ix_territory_number', table_name='territory')
    op.drop_table('territory')
    op.drop_index('ix_participant_surname', table_name='participant')
    op.drop_table('participant')
