"""Events Service models: team events and per-person attendance."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.events_service.models.enums import (
    AttendanceStatus,
    EventType,
    MatchLocation,
    RecurrencePattern,
    Visibility,
    enum_values,
)
from services.members_service.models.enums import PersonKind
from sqlalchemy import Boolean, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column


class Event(Base):
    """A match or training session of a team."""

    __tablename__ = "events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    team_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("teams.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    coach_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True
    )
    group_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("custom_groups.id", ondelete="SET NULL"),
        nullable=True,
    )

    event_type: Mapped[EventType] = mapped_column(
        SAEnum(
            EventType,
            name="event_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    starts_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), index=True, nullable=False
    )
    location: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    visibility: Mapped[Visibility] = mapped_column(
        SAEnum(
            Visibility,
            name="event_visibility_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=Visibility.PUBLIC,
    )
    # Only meaningful for matches
    match_location: Mapped[Optional[MatchLocation]] = mapped_column(
        SAEnum(
            MatchLocation,
            name="match_location_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
    )

    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False)
    recurrence_pattern: Mapped[Optional[RecurrencePattern]] = mapped_column(
        SAEnum(
            RecurrencePattern,
            name="recurrence_pattern_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<Event {self.event_type} {self.starts_at}>"


class Attendance(Base):
    """Status and convocation of one person for one event."""

    __tablename__ = "attendance"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # A players.id for PLAYER rows, a profiles.id for USER rows
    person_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), index=True, nullable=False
    )
    person_kind: Mapped[PersonKind] = mapped_column(
        SAEnum(
            PersonKind,
            name="person_kind_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=PersonKind.PLAYER,
    )

    status: Mapped[AttendanceStatus] = mapped_column(
        SAEnum(
            AttendanceStatus,
            name="attendance_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=AttendanceStatus.UNKNOWN,
    )
    is_convoked: Mapped[bool] = mapped_column(Boolean, default=False)
    # Set once a coach finalized the row
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("event_id", "person_id", name="uq_event_person_attendance"),
    )

    def __repr__(self):
        return f"<Attendance event={self.event_id} person={self.person_id} status={self.status}>"
