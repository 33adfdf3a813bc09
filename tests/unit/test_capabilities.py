"""Unit tests for the capability checks. Pure functions, no database."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from libs.auth.capabilities import (
    Action,
    Actor,
    Resource,
    authorize,
    require,
)
from libs.common.errors import Forbidden

TEAM = uuid.uuid4()
OTHER_TEAM = uuid.uuid4()
CHILD = uuid.uuid4()


def _coach() -> Actor:
    return Actor(user_id=uuid.uuid4(), role="COACH", coached_team_ids=frozenset({TEAM}))


def _guardian() -> Actor:
    return Actor(
        user_id=uuid.uuid4(),
        role="PARENT",
        managed_player_ids=frozenset({CHILD}),
        player_team_ids=frozenset({TEAM}),
    )


def _future() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


def _past() -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=1)


@pytest.mark.unit
def test_only_coaches_manage_their_team():
    assert authorize(_coach(), Action.MANAGE_TEAM, Resource(team_id=TEAM))
    assert not authorize(_coach(), Action.MANAGE_TEAM, Resource(team_id=OTHER_TEAM))
    assert not authorize(_guardian(), Action.MANAGE_TEAM, Resource(team_id=TEAM))


@pytest.mark.unit
def test_admin_manages_every_team():
    admin = Actor(user_id=uuid.uuid4(), role="ADMIN")
    assert authorize(admin, Action.MANAGE_TEAM, Resource(team_id=OTHER_TEAM))


@pytest.mark.unit
def test_guardian_sees_the_team_of_their_child():
    assert authorize(_guardian(), Action.VIEW_TEAM, Resource(team_id=TEAM))
    assert not authorize(_guardian(), Action.VIEW_TEAM, Resource(team_id=OTHER_TEAM))


@pytest.mark.unit
def test_guardian_answers_for_child_before_the_event_only():
    guardian = _guardian()
    upcoming = Resource(team_id=TEAM, person_id=CHILD, starts_at=_future())
    started = Resource(team_id=TEAM, person_id=CHILD, starts_at=_past())

    assert authorize(guardian, Action.SET_ATTENDANCE, upcoming)
    decision = authorize(guardian, Action.SET_ATTENDANCE, started)
    assert not decision
    assert "past event" in decision.reason


@pytest.mark.unit
def test_naive_start_times_are_read_as_utc():
    naive_past = (datetime.now(timezone.utc) - timedelta(hours=1)).replace(tzinfo=None)
    resource = Resource(team_id=TEAM, person_id=CHILD, starts_at=naive_past)
    assert not authorize(_guardian(), Action.SET_ATTENDANCE, resource)


@pytest.mark.unit
def test_coach_sets_any_status_even_after_the_event():
    resource = Resource(team_id=TEAM, person_id=CHILD, starts_at=_past())
    assert authorize(_coach(), Action.SET_ATTENDANCE, resource)


@pytest.mark.unit
def test_guardian_cannot_answer_for_another_child():
    resource = Resource(team_id=TEAM, person_id=uuid.uuid4(), starts_at=_future())
    with pytest.raises(Forbidden):
        require(_guardian(), Action.SET_ATTENDANCE, resource)


@pytest.mark.unit
def test_coach_self_report_needs_team_membership():
    coach = _coach()
    assert authorize(
        coach, Action.SET_ATTENDANCE, Resource(team_id=TEAM, person_id=coach.user_id)
    )
    assert not authorize(
        coach,
        Action.SET_ATTENDANCE,
        Resource(team_id=OTHER_TEAM, person_id=coach.user_id),
    )


@pytest.mark.unit
def test_rides_are_offered_for_a_child_or_by_a_coach_for_themselves():
    guardian, coach = _guardian(), _coach()

    assert authorize(guardian, Action.OFFER_RIDE, Resource(team_id=TEAM, person_id=CHILD))
    assert not authorize(
        guardian, Action.OFFER_RIDE, Resource(team_id=TEAM, person_id=guardian.user_id)
    )
    assert authorize(
        coach, Action.OFFER_RIDE, Resource(team_id=TEAM, person_id=coach.user_id)
    )


@pytest.mark.unit
def test_outsider_cannot_join_rides():
    outsider = Actor(user_id=uuid.uuid4(), role="PARENT")
    decision = authorize(
        outsider, Action.JOIN_RIDE, Resource(team_id=TEAM, person_id=outsider.user_id)
    )
    assert not decision
    assert decision.reason == "You are not part of this team"


@pytest.mark.unit
def test_driver_may_remove_passengers_and_delete_ride():
    guardian = _guardian()
    driver = guardian.user_id

    assert authorize(
        guardian, Action.LEAVE_RIDE, Resource(person_id=uuid.uuid4(), driver_id=driver)
    )
    assert authorize(guardian, Action.DELETE_RIDE, Resource(driver_id=driver))
    assert not authorize(_coach(), Action.DELETE_RIDE, Resource(driver_id=driver))


@pytest.mark.unit
def test_passenger_leaves_for_themselves_or_their_child():
    guardian = _guardian()
    someone_else = uuid.uuid4()

    assert authorize(
        guardian, Action.LEAVE_RIDE, Resource(person_id=CHILD, driver_id=someone_else)
    )
    assert not authorize(
        guardian,
        Action.LEAVE_RIDE,
        Resource(person_id=uuid.uuid4(), driver_id=someone_else),
    )
