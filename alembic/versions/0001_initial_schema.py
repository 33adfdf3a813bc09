"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, UUID


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'profile_role_enum': ('PLAYER', 'PARENT', 'COACH', 'ADMIN'),
    'person_kind_enum': ('PLAYER', 'USER'),
    'event_type_enum': ('MATCH', 'TRAINING'),
    'event_visibility_enum': ('PUBLIC', 'PRIVATE'),
    'match_location_enum': ('HOME', 'AWAY'),
    'recurrence_pattern_enum': ('WEEKLY',),
    'attendance_status_enum': ('UNKNOWN', 'PRESENT', 'ABSENT', 'LATE', 'SICK', 'INJURED'),
    'driver_relation_enum': ('PARENT_A', 'PARENT_B', 'COACH', 'OTHER'),
    'ride_restriction_enum': ('OPEN', 'CLOSED'),
}


def _enum(name: str) -> ENUM:
    return ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=True)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True))
    return columns


def upgrade() -> None:
    """Upgrade schema - Create roster, events, attendance and carpooling tables."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'profiles',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('role', _enum('profile_role_enum'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    op.create_table(
        'teams',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('invite_code', sa.String(), nullable=False),
        sa.Column('coach_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invite_code'),
    )
    op.create_index('ix_teams_coach_id', 'teams', ['coach_id'])

    op.create_table(
        'team_members',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('team_id', UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('team_id', 'user_id', name='uq_team_member'),
    )
    op.create_index('ix_team_members_team_id', 'team_members', ['team_id'])
    op.create_index('ix_team_members_user_id', 'team_members', ['user_id'])

    op.create_table(
        'players',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('team_id', UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('parent_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_players_team_id', 'players', ['team_id'])
    op.create_index('ix_players_parent_id', 'players', ['parent_id'])

    op.create_table(
        'custom_groups',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('team_id', UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('is_broadcast', sa.Boolean(), server_default='false', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_custom_groups_team_id', 'custom_groups', ['team_id'])

    op.create_table(
        'group_members',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('group_id', UUID(as_uuid=True), sa.ForeignKey('custom_groups.id', ondelete='CASCADE'), nullable=False),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('group_id', 'player_id', name='uq_group_player'),
        sa.UniqueConstraint('group_id', 'user_id', name='uq_group_user'),
        sa.CheckConstraint('(player_id IS NULL) <> (user_id IS NULL)', name='ck_group_member_one_target'),
    )
    op.create_index('ix_group_members_group_id', 'group_members', ['group_id'])

    op.create_table(
        'events',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('team_id', UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('coach_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=True),
        sa.Column('group_id', UUID(as_uuid=True), sa.ForeignKey('custom_groups.id', ondelete='SET NULL'), nullable=True),
        sa.Column('event_type', _enum('event_type_enum'), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('visibility', _enum('event_visibility_enum'), nullable=True),
        sa.Column('match_location', _enum('match_location_enum'), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), server_default='false', nullable=True),
        sa.Column('recurrence_pattern', _enum('recurrence_pattern_enum'), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), server_default='false', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_events_team_id', 'events', ['team_id'])
    op.create_index('ix_events_starts_at', 'events', ['starts_at'])
    op.create_index('ix_events_is_deleted', 'events', ['is_deleted'])

    op.create_table(
        'attendance',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('person_id', UUID(as_uuid=True), nullable=False),
        sa.Column('person_kind', _enum('person_kind_enum'), nullable=True),
        sa.Column('status', _enum('attendance_status_enum'), nullable=True),
        sa.Column('is_convoked', sa.Boolean(), server_default='false', nullable=True),
        sa.Column('is_locked', sa.Boolean(), server_default='false', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'person_id', name='uq_event_person_attendance'),
    )
    op.create_index('ix_attendance_event_id', 'attendance', ['event_id'])
    op.create_index('ix_attendance_person_id', 'attendance', ['person_id'])

    op.create_table(
        'rides',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('driver_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('seats_available', sa.Integer(), server_default='0', nullable=True),
        sa.Column('departure_location', sa.String(), nullable=True),
        sa.Column('departure_time', sa.String(), nullable=True),
        sa.Column('driver_relation', _enum('driver_relation_enum'), nullable=True),
        sa.Column('restriction', _enum('ride_restriction_enum'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'driver_id', name='uq_ride_event_driver'),
    )
    op.create_index('ix_rides_event_id', 'rides', ['event_id'])
    op.create_index('ix_rides_driver_id', 'rides', ['driver_id'])

    op.create_table(
        'ride_passengers',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('ride_id', UUID(as_uuid=True), sa.ForeignKey('rides.id', ondelete='CASCADE'), nullable=False),
        sa.Column('passenger_id', UUID(as_uuid=True), nullable=False),
        sa.Column('passenger_kind', _enum('person_kind_enum'), nullable=True),
        sa.Column('seat_count', sa.Integer(), server_default='1', nullable=True),
        sa.Column('is_anchor', sa.Boolean(), server_default='false', nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('ride_id', 'passenger_id', name='uq_ride_passenger'),
        sa.CheckConstraint('seat_count IN (1, 2)', name='ck_ride_passenger_seat_count'),
    )
    op.create_index('ix_ride_passengers_ride_id', 'ride_passengers', ['ride_id'])
    op.create_index('ix_ride_passengers_passenger_id', 'ride_passengers', ['passenger_id'])


def downgrade() -> None:
    """Downgrade schema - Drop every table and enum type."""
    for table in (
        'ride_passengers',
        'rides',
        'attendance',
        'events',
        'group_members',
        'custom_groups',
        'players',
        'team_members',
        'teams',
        'profiles',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        ENUM(name=name).drop(bind, checkfirst=True)
