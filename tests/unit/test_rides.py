"""Unit tests for ride offers, joins, seat accounting and removals."""

import asyncio

import pytest
from libs.common.errors import (
    AlreadyOnRide,
    DuplicateRide,
    Forbidden,
    NotEligible,
    NotFound,
    RideFull,
)
from services.events_service.models import AttendanceStatus
from services.events_service.services.attendance import set_status
from services.members_service.models import PersonKind
from services.transport_service.models import RideMode, RidePassenger, RideRestriction
from services.transport_service.schemas import RideCreate
from services.transport_service.services.rides import (
    create_ride,
    delete_ride,
    get_ride_or_404,
    join_ride,
    leave_ride,
    seats_left,
)
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tests.conftest import actor_for
from tests.factories import EventFactory, seed_team


async def _setup(db, present=("A", "B", "C", "D")):
    """Seed a team and an upcoming event where the given players attend."""
    world = await seed_team(db)
    event = EventFactory.create(team_id=world.team.id)
    db.add(event)
    await db.commit()
    for key in present:
        guardian = await actor_for(db, world.guardian(key))
        await set_status(
            db, event, world.player(key).id, AttendanceStatus.PRESENT, guardian
        )
    return world, event


async def _offer(db, world, event, key="A", **ride_fields):
    guardian = await actor_for(db, world.guardian(key))
    ride_in = RideCreate(child_id=world.player(key).id, **ride_fields)
    return await create_ride(db, event, guardian, ride_in)


async def _join(db, world, ride, key, seat_count=1):
    guardian = await actor_for(db, world.guardian(key))
    return await join_ride(db, ride.id, guardian, world.player(key).id, seat_count)


# ---------------------------------------------------------------------------
# create_ride
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_offer_creates_ride_with_child_as_anchor(db_session):
    world, event = await _setup(db_session, present=("A",))

    ride = await _offer(db_session, world, event, seats_available=2)

    assert ride.seats_available == 2
    assert ride.driver_id == world.guardian("A").id
    assert ride.restriction == RideRestriction.OPEN
    assert await seats_left(db_session, ride) == 2

    result = await db_session.execute(
        select(RidePassenger).where(RidePassenger.ride_id == ride.id)
    )
    anchor = result.scalar_one()
    assert anchor.passenger_id == world.player("A").id
    assert anchor.passenger_kind == PersonKind.PLAYER
    assert anchor.seat_count == 1
    assert anchor.is_anchor is True


@pytest.mark.asyncio
@pytest.mark.unit
async def test_private_mode_offers_no_seats(db_session):
    world, event = await _setup(db_session, present=("A", "B"))

    ride = await _offer(
        db_session, world, event, seats_available=3, mode=RideMode.PRIVATE
    )

    assert ride.seats_available == 0
    assert ride.restriction == RideRestriction.CLOSED
    with pytest.raises(RideFull):
        await _join(db_session, world, ride, "B")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_second_offer_for_the_same_event_is_a_duplicate(db_session):
    world, event = await _setup(db_session, present=("A",))
    await _offer(db_session, world, event, seats_available=2)

    with pytest.raises(DuplicateRide):
        await _offer(db_session, world, event, seats_available=1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_offer_requires_an_attending_anchor(db_session):
    world, event = await _setup(db_session, present=())

    with pytest.raises(NotEligible):
        await _offer(db_session, world, event, seats_available=2)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_guardian_cannot_drive_for_themselves(db_session):
    world, event = await _setup(db_session, present=("A",))
    guardian = await actor_for(db_session, world.guardian("A"))

    with pytest.raises(Forbidden):
        await create_ride(db_session, event, guardian, RideCreate(seats_available=2))


# ---------------------------------------------------------------------------
# join_ride
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_join_takes_seats_until_the_ride_is_full(db_session):
    """D takes one of two seats; a two-seat request for the last one fails."""
    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=2)

    passenger = await _join(db_session, world, ride, "D")
    assert passenger.seat_count == 1
    assert passenger.is_anchor is False
    assert await seats_left(db_session, ride) == 1

    with pytest.raises(RideFull):
        await _join(db_session, world, ride, "B", seat_count=2)
    assert await seats_left(db_session, ride) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_second_join_for_the_last_seat_is_full(db_session):
    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=1)

    await _join(db_session, world, ride, "B")
    with pytest.raises(RideFull):
        await _join(db_session, world, ride, "C")

    assert await seats_left(db_session, ride) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_join_locks_the_ride_row(db_session, monkeypatch):
    """The ride is read with FOR UPDATE before seats are counted."""
    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=1)
    guardian = await actor_for(db_session, world.guardian("B"))

    statements = []
    execute = db_session.execute

    async def recording_execute(statement, *args, **kwargs):
        statements.append(statement)
        return await execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", recording_execute)
    await join_ride(db_session, ride.id, guardian, world.player("B").id, 1)

    first = str(statements[0].compile(dialect=postgresql.dialect()))
    assert "FROM rides" in first
    assert "FOR UPDATE" in first


@pytest.mark.asyncio
@pytest.mark.unit
async def test_concurrent_joins_for_the_last_seat(db_session, test_engine):
    """Two sessions race for one seat: one row is stored, the other gets RideFull."""
    if test_engine.dialect.name != "postgresql":
        pytest.skip("Row locks need Postgres (set TEST_DATABASE_URL)")

    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=1)
    guardian_b = await actor_for(db_session, world.guardian("B"))
    guardian_c = await actor_for(db_session, world.guardian("C"))
    await db_session.commit()

    session_factory = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as first, session_factory() as second:
        results = await asyncio.gather(
            join_ride(first, ride.id, guardian_b, world.player("B").id, 1),
            join_ride(second, ride.id, guardian_c, world.player("C").id, 1),
            return_exceptions=True,
        )

    assert sum(isinstance(r, RidePassenger) for r in results) == 1
    assert sum(isinstance(r, RideFull) for r in results) == 1
    result = await db_session.execute(
        select(RidePassenger).where(
            RidePassenger.ride_id == ride.id, RidePassenger.is_anchor.is_(False)
        )
    )
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_joining_twice_is_rejected(db_session):
    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=3)
    await _join(db_session, world, ride, "B")

    with pytest.raises(AlreadyOnRide):
        await _join(db_session, world, ride, "B")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_anchor_cannot_join_their_own_ride(db_session):
    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=3)

    with pytest.raises(AlreadyOnRide):
        await _join(db_session, world, ride, "A")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rider_must_be_attending(db_session):
    world, event = await _setup(db_session, present=("A",))
    ride = await _offer(db_session, world, event, seats_available=3)

    with pytest.raises(NotEligible):
        await _join(db_session, world, ride, "B")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_closed_ride_refuses_passengers(db_session):
    world, event = await _setup(db_session)
    ride = await _offer(
        db_session,
        world,
        event,
        seats_available=3,
        restriction=RideRestriction.CLOSED,
    )

    with pytest.raises(RideFull):
        await _join(db_session, world, ride, "B")


# ---------------------------------------------------------------------------
# leave_ride / delete_ride
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_leave_frees_the_seat_and_is_idempotent(db_session):
    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=2)
    await _join(db_session, world, ride, "B", seat_count=2)
    assert await seats_left(db_session, ride) == 0

    guardian_b = await actor_for(db_session, world.guardian("B"))
    assert await leave_ride(db_session, ride.id, guardian_b, world.player("B").id)
    assert not await leave_ride(db_session, ride.id, guardian_b, world.player("B").id)
    assert await seats_left(db_session, ride) == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_driver_can_remove_a_passenger(db_session):
    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=2)
    await _join(db_session, world, ride, "C")

    driver = await actor_for(db_session, world.guardian("A"))
    assert await leave_ride(db_session, ride.id, driver, world.player("C").id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_only_the_driver_deletes_a_ride(db_session):
    world, event = await _setup(db_session)
    ride = await _offer(db_session, world, event, seats_available=2)
    ride_id = ride.id

    coach = await actor_for(db_session, world.coach)
    with pytest.raises(Forbidden):
        await delete_ride(db_session, ride_id, coach)

    driver = await actor_for(db_session, world.guardian("A"))
    await delete_ride(db_session, ride_id, driver)

    with pytest.raises(NotFound):
        await get_ride_or_404(db_session, ride_id)
