"""Event lifecycle: create, edit, list with visibility, delete, cleanup."""

import uuid
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional

from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc, utc_now, week_window
from libs.common.errors import Forbidden, InvalidInput, NotFound
from libs.common.logging import get_logger
from services.events_service.models import (
    Attendance,
    Event,
    EventType,
    MatchLocation,
    RecurrencePattern,
    Visibility,
)
from services.events_service.schemas import (
    AttendanceResponse,
    EventCreate,
    EventResponse,
    EventUpdate,
)
from services.events_service.services.convocations import (
    ensure_on_roster,
    reconcile_convocations,
)
from services.members_service.models import CustomGroup
from services.members_service.services.roster import get_person_names, get_team_or_404
from services.transport_service.models import Ride, RidePassenger
from services.transport_service.services.display import serialize_rides
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

RANGE_WEEK = "week"
RANGE_SEASON = "season"


async def get_event_or_404(db: AsyncSession, event_id: uuid.UUID) -> Event:
    event = await db.get(Event, event_id)
    if not event or event.is_deleted:
        raise NotFound("Event not found")
    return event


def _normalize_match_location(
    event_type: EventType, match_location: Optional[MatchLocation]
) -> Optional[MatchLocation]:
    if event_type != EventType.MATCH:
        return None
    return match_location or MatchLocation.HOME


async def _check_group(
    db: AsyncSession, group_id: Optional[uuid.UUID], team_id: uuid.UUID
) -> None:
    if group_id is None:
        return
    group = await db.get(CustomGroup, group_id)
    if not group or group.team_id != team_id:
        raise InvalidInput("Group does not belong to this team")


async def create_event(db: AsyncSession, event_in: EventCreate, actor: Actor) -> Event:
    team = await get_team_or_404(db, event_in.team_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=team.id))
    await _check_group(db, event_in.group_id, team.id)
    if event_in.selected_players:
        await ensure_on_roster(db, team.id, event_in.selected_players)

    event = Event(
        team_id=team.id,
        coach_id=actor.user_id,
        group_id=event_in.group_id,
        event_type=event_in.event_type,
        starts_at=ensure_utc(event_in.starts_at),
        location=event_in.location,
        notes=event_in.notes,
        visibility=event_in.visibility,
        match_location=_normalize_match_location(
            event_in.event_type, event_in.match_location
        ),
        is_recurring=event_in.is_recurring,
        recurrence_pattern=(
            RecurrencePattern.WEEKLY if event_in.is_recurring else None
        ),
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)
    logger.info("Event %s created for team %s", event.id, team.id)

    if event_in.selected_players is not None:
        await reconcile_convocations(db, event, event_in.selected_players, actor)
    return event


async def update_event(
    db: AsyncSession, event_id: uuid.UUID, event_in: EventUpdate, actor: Actor
) -> Event:
    """Apply field edits, then reconcile convocations when a set is sent."""
    event = await get_event_or_404(db, event_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=event.team_id))

    update_data = event_in.model_dump(exclude_unset=True)
    selected_players = update_data.pop("selected_players", None)
    if selected_players:
        await ensure_on_roster(db, event.team_id, selected_players)
    if "group_id" in update_data:
        await _check_group(db, update_data["group_id"], event.team_id)
    if update_data.get("starts_at") is not None:
        update_data["starts_at"] = ensure_utc(update_data["starts_at"])

    for field, value in update_data.items():
        if value is None and field in ("event_type", "starts_at", "visibility"):
            continue
        setattr(event, field, value)

    event.match_location = _normalize_match_location(
        event.event_type, event.match_location
    )
    if "is_recurring" in update_data:
        event.recurrence_pattern = (
            RecurrencePattern.WEEKLY if event.is_recurring else None
        )

    await db.commit()
    await db.refresh(event)

    if selected_players is not None:
        await reconcile_convocations(db, event, selected_players, actor)
    return event


def _can_see(event: Event, actor: Actor, convoked: set[uuid.UUID]) -> bool:
    if event.visibility == Visibility.PUBLIC or actor.coaches(event.team_id):
        return True
    return actor.user_id in convoked or bool(actor.managed_player_ids & convoked)


async def list_events(
    db: AsyncSession,
    team_id: uuid.UUID,
    actor: Actor,
    range_: str = RANGE_WEEK,
    now: Optional[datetime] = None,
) -> list[EventResponse]:
    """Visible, non-deleted events of a team with attendance and rides."""
    team = await get_team_or_404(db, team_id)
    if not actor.belongs_to(team.id):
        raise Forbidden("You are not part of this team")

    query = select(Event).where(Event.team_id == team.id, Event.is_deleted.is_(False))
    if range_ == RANGE_WEEK:
        settings = get_settings()
        start, end = week_window(
            now or utc_now(), settings.TIMEZONE, settings.WEEKEND_ROLLOVER_HOUR
        )
        query = query.where(Event.starts_at >= start, Event.starts_at <= end)
    elif range_ != RANGE_SEASON:
        raise InvalidInput(f"Unknown range '{range_}', expected week or season")

    result = await db.execute(query.order_by(Event.starts_at))
    events = list(result.scalars().all())
    responses = await build_event_responses(db, events)

    visible = []
    for event, response in zip(events, responses):
        convoked = {a.person_id for a in response.attendance if a.is_convoked}
        if _can_see(event, actor, convoked):
            visible.append(response)
    return visible


async def build_event_responses(
    db: AsyncSession, events: Iterable[Event]
) -> list[EventResponse]:
    events = list(events)
    if not events:
        return []
    event_ids = [event.id for event in events]

    result = await db.execute(
        select(Attendance)
        .where(Attendance.event_id.in_(event_ids))
        .order_by(Attendance.created_at)
    )
    rows = list(result.scalars().all())
    names = await get_person_names(db, {row.person_id for row in rows})

    rides_result = await db.execute(
        select(Ride).where(Ride.event_id.in_(event_ids)).order_by(Ride.created_at)
    )
    rides = list(rides_result.scalars().all())
    riders_result = await db.execute(
        select(Ride.event_id, RidePassenger.passenger_id)
        .select_from(RidePassenger)
        .join(Ride, Ride.id == RidePassenger.ride_id)
        .where(Ride.event_id.in_(event_ids))
    )
    on_ride: dict[uuid.UUID, set[uuid.UUID]] = defaultdict(set)
    for row in riders_result.all():
        on_ride[row.event_id].add(row.passenger_id)
    for ride in rides:
        on_ride[ride.event_id].add(ride.driver_id)

    attendance_by_event: dict[uuid.UUID, list[AttendanceResponse]] = defaultdict(list)
    for row in rows:
        response = AttendanceResponse.model_validate(row)
        response.name = names.get(row.person_id)
        response.has_ride = row.person_id in on_ride[row.event_id]
        attendance_by_event[row.event_id].append(response)

    rides_by_event: dict[uuid.UUID, list[Ride]] = defaultdict(list)
    for ride in rides:
        rides_by_event[ride.event_id].append(ride)

    responses = []
    for event in events:
        response = EventResponse.model_validate(event)
        response.attendance = attendance_by_event[event.id]
        response.rides = await serialize_rides(
            db, rides_by_event[event.id], event.team_id
        )
        responses.append(response)
    return responses


async def soft_delete_event(
    db: AsyncSession, event_id: uuid.UUID, actor: Actor, mode: str = "single"
) -> int:
    """Hide an event, or it and every later one of its series.

    ``series`` also switches recurrence off for the team's events of that
    type so generation stops. Returns the number of events hidden.
    """
    event = await get_event_or_404(db, event_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=event.team_id))

    if mode == "single":
        event.is_deleted = True
        await db.commit()
        logger.info("Event %s deleted", event_id)
        return 1
    if mode != "series":
        raise InvalidInput(f"Unknown delete mode '{mode}', expected single or series")

    team_id, event_type, starts_at = event.team_id, event.event_type, event.starts_at
    result = await db.execute(
        update(Event)
        .where(
            Event.team_id == team_id,
            Event.event_type == event_type,
            Event.starts_at >= starts_at,
            Event.is_deleted.is_(False),
        )
        .values(is_deleted=True)
        .execution_options(synchronize_session="fetch")
    )
    await db.execute(
        update(Event)
        .where(
            Event.team_id == team_id,
            Event.event_type == event_type,
            Event.is_recurring.is_(True),
        )
        .values(is_recurring=False)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    logger.info(
        "Series of %s events for team %s deleted from %s (%d events)",
        event_type.value,
        team_id,
        starts_at,
        result.rowcount,
    )
    return result.rowcount


async def cleanup_events(
    db: AsyncSession, team_id: uuid.UUID, actor: Actor, now: Optional[datetime] = None
) -> int:
    """Hard-delete a team's events older than the grace period."""
    team = await get_team_or_404(db, team_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=team.id))

    cutoff = (now or utc_now()) - timedelta(days=get_settings().CLEANUP_GRACE_DAYS)
    # Attendance and rides go with their event (ON DELETE CASCADE)
    result = await db.execute(
        delete(Event)
        .where(Event.team_id == team.id, Event.starts_at < cutoff)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    logger.info("Cleanup removed %d events of team %s", result.rowcount, team.id)
    return result.rowcount
