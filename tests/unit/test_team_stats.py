"""Unit tests for team attendance statistics."""

from datetime import timedelta

import pytest
from libs.common.datetime_utils import utc_now
from libs.common.errors import Forbidden
from services.events_service.models import AttendanceStatus, Visibility
from services.events_service.services.stats import team_stats
from tests.conftest import actor_for
from tests.factories import AttendanceFactory, EventFactory, seed_team


async def _past_event(db, world, days_ago, answers, **overrides):
    """Insert an event ``days_ago`` with ``{player_key: status}`` answers."""
    event = EventFactory.create(
        team_id=world.team.id,
        starts_at=utc_now() - timedelta(days=days_ago),
        **overrides,
    )
    db.add(event)
    await db.flush()
    for key, status in answers.items():
        db.add(AttendanceFactory.create(event.id, world.player(key).id, status=status))
    await db.commit()
    return event


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rate_top_and_flop_over_recent_events(db_session):
    world = await seed_team(db_session)
    P, A, L, U = (
        AttendanceStatus.PRESENT,
        AttendanceStatus.ABSENT,
        AttendanceStatus.LATE,
        AttendanceStatus.UNKNOWN,
    )
    await _past_event(db_session, world, 3, {"A": P, "B": A, "C": U})
    await _past_event(db_session, world, 10, {"A": P, "B": L, "D": A})
    coach = await actor_for(db_session, world.coach)

    stats = await team_stats(db_session, world.team.id, coach)

    assert stats.total_players == 4
    assert stats.total_events == 2
    # 3 attending answers out of 5 known ones
    assert stats.attendance_rate == 60
    assert stats.top_player.person_id == world.player("A").id
    assert stats.top_player.name == "Alex"
    assert stats.top_player.count == 2
    # B and D both missed once; ties go to the first name
    assert stats.flop_player.name == "Basile"
    assert stats.flop_player.count == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_old_future_and_unconvoked_private_rows_are_ignored(db_session):
    world = await seed_team(db_session)
    P = AttendanceStatus.PRESENT
    await _past_event(db_session, world, 200, {"A": AttendanceStatus.ABSENT})
    await _past_event(db_session, world, -2, {"A": AttendanceStatus.ABSENT})
    await _past_event(db_session, world, 5, {"B": P}, visibility=Visibility.PRIVATE)
    await _past_event(db_session, world, 4, {"C": P})
    guardian = await actor_for(db_session, world.guardian("C"))

    stats = await team_stats(db_session, world.team.id, guardian)

    assert stats.total_events == 2
    assert stats.attendance_rate == 100
    assert stats.top_player.name == "Chloe"
    assert stats.flop_player is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_team_without_history_has_empty_stats(db_session):
    world = await seed_team(db_session)
    coach = await actor_for(db_session, world.coach)

    stats = await team_stats(db_session, world.team.id, coach)

    assert stats.total_events == 0
    assert stats.attendance_rate == 0
    assert stats.top_player is None
    assert stats.flop_player is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_outsiders_cannot_read_stats(db_session):
    world = await seed_team(db_session)
    outsider = await actor_for(db_session, world.outsider)

    with pytest.raises(Forbidden):
        await team_stats(db_session, world.team.id, outsider)
