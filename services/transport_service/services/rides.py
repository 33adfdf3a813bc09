"""Ride roster operations: offer, join, leave, delete, and cascades.

Seat accounting ignores the anchor row (the driver's own seat): for every
ride, the seat_count of non-anchor passengers never exceeds
``seats_available``. Joins lock the ride row before counting so two
concurrent joins cannot both take the last seat.
"""

import uuid
from typing import Optional

from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.errors import AlreadyOnRide, DuplicateRide, NotEligible, NotFound, RideFull
from libs.common.logging import get_logger
from libs.db.errors import is_unique_violation
from services.events_service.models import ATTENDING_STATUSES, Attendance, Event
from services.members_service.models import PersonKind
from services.members_service.services.roster import (
    get_guardian_id,
    get_guardian_player_ids,
)
from services.transport_service.models import (
    Ride,
    RideMode,
    RidePassenger,
    RideRestriction,
)
from services.transport_service.schemas import RideCreate
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_ride_or_404(
    db: AsyncSession, ride_id: uuid.UUID, for_update: bool = False
) -> Ride:
    query = select(Ride).where(Ride.id == ride_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    ride = result.scalar_one_or_none()
    if not ride:
        raise NotFound("Ride not found")
    return ride


async def get_event_or_404(db: AsyncSession, event_id: uuid.UUID) -> Event:
    event = await db.get(Event, event_id)
    if not event or event.is_deleted:
        raise NotFound("Event not found")
    return event


async def ensure_eligible(
    db: AsyncSession, event_id: uuid.UUID, person_id: uuid.UUID
) -> None:
    """Raise ``NotEligible`` unless the person is PRESENT or LATE."""
    result = await db.execute(
        select(Attendance.status).where(
            Attendance.event_id == event_id, Attendance.person_id == person_id
        )
    )
    status = result.scalar_one_or_none()
    if status not in ATTENDING_STATUSES:
        raise NotEligible()


async def seats_left(db: AsyncSession, ride: Ride) -> int:
    """Seats still free for others: offered seats minus non-anchor seats."""
    result = await db.execute(
        select(func.coalesce(func.sum(RidePassenger.seat_count), 0)).where(
            RidePassenger.ride_id == ride.id, RidePassenger.is_anchor.is_(False)
        )
    )
    taken = result.scalar_one()
    return max(0, ride.seats_available - taken)


async def create_ride(
    db: AsyncSession, event: Event, actor: Actor, ride_in: RideCreate
) -> Ride:
    """
    Offer a ride for ``event``.

    1. The anchor is the selected child, or the actor itself for a coach
    2. The anchor must be PRESENT or LATE
    3. PRIVATE mode offers no seats and closes the ride
    4. Ride and anchor passenger are written in one transaction
    """
    event_id, team_id = event.id, event.team_id
    anchor_id = ride_in.child_id or actor.user_id
    require(
        actor, Action.OFFER_RIDE, Resource(team_id=team_id, person_id=anchor_id)
    )
    await ensure_eligible(db, event_id, anchor_id)

    existing = await db.execute(
        select(Ride.id).where(Ride.event_id == event_id, Ride.driver_id == actor.user_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateRide()

    if ride_in.mode == RideMode.PRIVATE:
        seats, restriction = 0, RideRestriction.CLOSED
    else:
        seats, restriction = ride_in.seats_available, ride_in.restriction

    ride = Ride(
        event_id=event_id,
        driver_id=actor.user_id,
        seats_available=seats,
        departure_location=ride_in.departure_location,
        departure_time=ride_in.departure_time,
        driver_relation=ride_in.driver_relation,
        restriction=restriction,
    )
    db.add(ride)
    try:
        await db.flush()
        db.add(
            RidePassenger(
                ride_id=ride.id,
                passenger_id=anchor_id,
                passenger_kind=(
                    PersonKind.USER
                    if anchor_id == actor.user_id
                    else PersonKind.PLAYER
                ),
                seat_count=1,
                is_anchor=True,
            )
        )
        await db.flush()
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if is_unique_violation(exc):
            raise DuplicateRide()
        raise

    await db.refresh(ride)
    logger.info(
        "Ride %s offered by %s for event %s (%d seats)",
        ride.id,
        actor.user_id,
        event_id,
        seats,
    )
    return ride


async def join_ride(
    db: AsyncSession,
    ride_id: uuid.UUID,
    actor: Actor,
    rider_id: Optional[uuid.UUID],
    seat_count: int = 1,
) -> RidePassenger:
    """Add a rider to a ride, holding the ride row lock while seats are counted."""
    ride = await get_ride_or_404(db, ride_id, for_update=True)
    event = await get_event_or_404(db, ride.event_id)
    rider_id = rider_id or actor.user_id
    require(
        actor, Action.JOIN_RIDE, Resource(team_id=event.team_id, person_id=rider_id)
    )

    if rider_id == ride.driver_id:
        raise AlreadyOnRide("The driver is already on this ride")
    existing = await db.execute(
        select(RidePassenger.id).where(
            RidePassenger.ride_id == ride.id, RidePassenger.passenger_id == rider_id
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise AlreadyOnRide()

    await ensure_eligible(db, ride.event_id, rider_id)

    if ride.restriction == RideRestriction.CLOSED:
        raise RideFull("This ride is closed to new passengers")
    left = await seats_left(db, ride)
    if seat_count > left:
        raise RideFull(f"Only {left} seat(s) left on this ride")

    passenger = RidePassenger(
        ride_id=ride.id,
        passenger_id=rider_id,
        passenger_kind=(
            PersonKind.USER if rider_id == actor.user_id else PersonKind.PLAYER
        ),
        seat_count=seat_count,
        is_anchor=False,
    )
    db.add(passenger)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if is_unique_violation(exc):
            raise AlreadyOnRide()
        raise

    await db.refresh(passenger)
    logger.info(
        "%s joined ride %s with %d seat(s), %d left",
        rider_id,
        ride_id,
        seat_count,
        left - seat_count,
    )
    return passenger


async def leave_ride(
    db: AsyncSession, ride_id: uuid.UUID, actor: Actor, rider_id: uuid.UUID
) -> bool:
    """Remove a rider. Removing someone who is not on the ride is a no-op."""
    ride = await get_ride_or_404(db, ride_id)
    require(
        actor,
        Action.LEAVE_RIDE,
        Resource(person_id=rider_id, driver_id=ride.driver_id),
    )
    result = await db.execute(
        delete(RidePassenger).where(
            RidePassenger.ride_id == ride.id,
            RidePassenger.passenger_id == rider_id,
            RidePassenger.is_anchor.is_(False),
        )
    )
    await db.commit()
    removed = result.rowcount > 0
    if removed:
        logger.info("%s left ride %s", rider_id, ride_id)
    return removed


async def delete_ride(db: AsyncSession, ride_id: uuid.UUID, actor: Actor) -> None:
    ride = await get_ride_or_404(db, ride_id)
    require(actor, Action.DELETE_RIDE, Resource(driver_id=ride.driver_id))
    # Passenger rows go with the ride (ON DELETE CASCADE)
    await db.execute(delete(Ride).where(Ride.id == ride.id))
    await db.commit()
    logger.info("Ride %s deleted by its driver", ride_id)


async def cascade_unavailability(
    db: AsyncSession,
    event_id: uuid.UUID,
    person_id: uuid.UUID,
    person_kind: PersonKind,
) -> list[uuid.UUID]:
    """Drop ride data that no longer makes sense once a person cannot come.

    Statuses are read from the database inside the caller's transaction,
    after the triggering status was flushed. Nothing is committed here.
    Returns the ids of deleted rides.
    """
    driver_id: Optional[uuid.UUID] = None
    sibling_ids: list[uuid.UUID] = []

    if person_kind == PersonKind.USER:
        driver_id = person_id
    else:
        guardian_id = await get_guardian_id(db, person_id)
        if guardian_id is not None:
            sibling_ids = [
                pid
                for pid in await get_guardian_player_ids(db, guardian_id)
                if pid != person_id
            ]
            attending_siblings = await _attending(db, event_id, sibling_ids)
            if attending_siblings:
                await _reanchor(db, event_id, guardian_id, person_id, attending_siblings)
            else:
                driver_id = guardian_id

    cancelled: list[uuid.UUID] = []
    if driver_id is not None:
        result = await db.execute(
            select(Ride.id).where(Ride.event_id == event_id, Ride.driver_id == driver_id)
        )
        cancelled = list(result.scalars().all())
        if cancelled:
            await db.execute(delete(Ride).where(Ride.id.in_(cancelled)))

    # The person also loses any seat taken on someone else's ride
    await db.execute(
        delete(RidePassenger).where(
            RidePassenger.passenger_id == person_id,
            RidePassenger.is_anchor.is_(False),
            RidePassenger.ride_id.in_(
                select(Ride.id).where(Ride.event_id == event_id)
            ),
        )
    )

    if cancelled:
        logger.info(
            "Cancelled ride(s) %s for event %s after %s became unavailable",
            ", ".join(str(ride_id) for ride_id in cancelled),
            event_id,
            person_id,
        )
    return cancelled


async def _attending(
    db: AsyncSession, event_id: uuid.UUID, person_ids: list[uuid.UUID]
) -> list[uuid.UUID]:
    if not person_ids:
        return []
    result = await db.execute(
        select(Attendance.person_id).where(
            Attendance.event_id == event_id,
            Attendance.person_id.in_(person_ids),
            Attendance.status.in_(ATTENDING_STATUSES),
        )
    )
    return list(result.scalars().all())


async def _reanchor(
    db: AsyncSession,
    event_id: uuid.UUID,
    guardian_id: uuid.UUID,
    old_anchor_id: uuid.UUID,
    candidates: list[uuid.UUID],
) -> None:
    """Move the guardian's anchor seat to a sibling who still attends."""
    result = await db.execute(
        select(RidePassenger)
        .join(Ride, Ride.id == RidePassenger.ride_id)
        .where(
            Ride.event_id == event_id,
            Ride.driver_id == guardian_id,
            RidePassenger.passenger_id == old_anchor_id,
            RidePassenger.is_anchor.is_(True),
        )
    )
    anchor = result.scalar_one_or_none()
    if anchor is None:
        return

    taken = await db.execute(
        select(RidePassenger.passenger_id).where(
            RidePassenger.ride_id == anchor.ride_id,
            RidePassenger.passenger_id.in_(candidates),
        )
    )
    on_ride = set(taken.scalars().all())
    free = [pid for pid in candidates if pid not in on_ride]
    if free:
        anchor.passenger_id = free[0]
        await db.flush()
        return

    # Every attending sibling already holds a seat: promote one of them
    result = await db.execute(
        select(RidePassenger).where(
            RidePassenger.ride_id == anchor.ride_id,
            RidePassenger.passenger_id == candidates[0],
        )
    )
    sibling = result.scalar_one()
    await db.delete(anchor)
    await db.flush()
    sibling.is_anchor = True
    sibling.seat_count = 1
    await db.flush()
