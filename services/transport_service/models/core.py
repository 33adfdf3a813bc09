import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.members_service.models.enums import PersonKind
from services.transport_service.models.enums import (
    DriverRelation,
    RideRestriction,
    enum_values,
)
from sqlalchemy import Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column


class Ride(Base):
    """A carpooling offer from one driver for one event."""

    __tablename__ = "rides"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    driver_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id"), index=True, nullable=False
    )

    # Seats offered to others; 0 = private ride
    seats_available: Mapped[int] = mapped_column(Integer, default=0)
    departure_location: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    departure_time: Mapped[Optional[str]] = mapped_column(
        String, nullable=True
    )  # "08:45"
    driver_relation: Mapped[DriverRelation] = mapped_column(
        SAEnum(
            DriverRelation,
            name="driver_relation_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=DriverRelation.PARENT_A,
    )
    restriction: Mapped[RideRestriction] = mapped_column(
        SAEnum(
            RideRestriction,
            name="ride_restriction_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=RideRestriction.OPEN,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("event_id", "driver_id", name="uq_ride_event_driver"),
    )

    def __repr__(self):
        return f"<Ride event={self.event_id} driver={self.driver_id}>"


class RidePassenger(Base):
    __tablename__ = "ride_passengers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    ride_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("rides.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # A players.id for PLAYER rows, a profiles.id for USER rows
    passenger_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), index=True, nullable=False
    )
    passenger_kind: Mapped[PersonKind] = mapped_column(
        SAEnum(
            PersonKind,
            name="person_kind_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=PersonKind.PLAYER,
    )
    seat_count: Mapped[int] = mapped_column(Integer, default=1)
    # The driver's own seat; never counted against seats_available
    is_anchor: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint("ride_id", "passenger_id", name="uq_ride_passenger"),
        CheckConstraint("seat_count IN (1, 2)", name="ck_ride_passenger_seat_count"),
    )

    def __repr__(self):
        return f"<RidePassenger ride={self.ride_id} passenger={self.passenger_id}>"
