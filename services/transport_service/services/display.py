"""Read-side helpers: driver display names and ride serialization."""

import uuid
from collections import defaultdict
from typing import Iterable, Optional

from services.members_service.models import Player, Profile, ProfileRole
from services.members_service.services.roster import get_person_names
from services.transport_service.models import DriverRelation, Ride, RidePassenger
from services.transport_service.schemas import RidePassengerResponse, RideResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

PARENT_LABELS = {
    DriverRelation.PARENT_A: "Dad",
    DriverRelation.PARENT_B: "Mum",
    DriverRelation.OTHER: "Relative",
}


def resolve_driver_name(
    profile: Optional[Profile],
    relation: DriverRelation,
    child_name: Optional[str] = None,
) -> str:
    """
    Label a driver for ride lists.

    "Dad of Lucas" when a non-coach driver has a child on the roster,
    "Coach Martin" for coaches, otherwise the profile name, the e-mail local
    part, or "Unknown driver".
    """
    if relation != DriverRelation.COACH and child_name:
        return f"{PARENT_LABELS[relation]} of {child_name}"

    name = None
    if profile is not None:
        name = profile.full_name or (
            profile.email.split("@")[0] if profile.email else None
        )

    is_coach = relation == DriverRelation.COACH or (
        profile is not None and profile.role == ProfileRole.COACH
    )
    if is_coach:
        return f"Coach {name}" if name else "Coach"
    return name or "Unknown driver"


async def serialize_rides(
    db: AsyncSession, rides: Iterable[Ride], team_id: uuid.UUID
) -> list[RideResponse]:
    """Build ride responses with passengers, seats left and driver labels."""
    rides = list(rides)
    if not rides:
        return []
    ride_ids = [ride.id for ride in rides]
    driver_ids = {ride.driver_id for ride in rides}

    result = await db.execute(
        select(RidePassenger)
        .where(RidePassenger.ride_id.in_(ride_ids))
        .order_by(RidePassenger.created_at)
    )
    passengers = list(result.scalars().all())
    names = await get_person_names(db, {p.passenger_id for p in passengers})

    profiles = await db.execute(select(Profile).where(Profile.id.in_(driver_ids)))
    profile_by_id = {p.id: p for p in profiles.scalars().all()}

    # First child of each driver on this team, by name
    children = await db.execute(
        select(Player.parent_id, Player.full_name)
        .where(
            Player.parent_id.in_(driver_ids),
            Player.team_id == team_id,
            Player.is_active.is_(True),
        )
        .order_by(Player.full_name)
    )
    child_by_driver: dict[uuid.UUID, str] = {}
    for row in children.all():
        child_by_driver.setdefault(row.parent_id, row.full_name)

    by_ride: dict[uuid.UUID, list[RidePassenger]] = defaultdict(list)
    for passenger in passengers:
        by_ride[passenger.ride_id].append(passenger)

    responses = []
    for ride in rides:
        ride_passengers = by_ride[ride.id]
        anchor = next((p for p in ride_passengers if p.is_anchor), None)
        child_name = None
        if anchor is not None and anchor.passenger_id != ride.driver_id:
            child_name = names.get(anchor.passenger_id)
        child_name = child_name or child_by_driver.get(ride.driver_id)

        taken = sum(p.seat_count for p in ride_passengers if not p.is_anchor)
        response = RideResponse.model_validate(ride)
        response.driver_name = resolve_driver_name(
            profile_by_id.get(ride.driver_id), ride.driver_relation, child_name
        )
        response.seats_left = max(0, ride.seats_available - taken)
        response.passengers = [
            RidePassengerResponse(
                id=p.id,
                passenger_id=p.passenger_id,
                passenger_kind=p.passenger_kind,
                seat_count=p.seat_count,
                is_anchor=p.is_anchor,
                name=names.get(p.passenger_id),
            )
            for p in ride_passengers
        ]
        responses.append(response)
    return responses
