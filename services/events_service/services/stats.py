"""Team attendance statistics over recent past events."""

import uuid
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from services.events_service.models import (
    ATTENDING_STATUSES,
    Attendance,
    AttendanceStatus,
    Event,
    Visibility,
)
from services.events_service.schemas import PlayerStat, TeamStatsResponse
from services.members_service.models import PersonKind, Player
from services.members_service.services.roster import get_person_names, get_team_or_404
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession


def _leader(counts: Counter, names: dict) -> Optional[PlayerStat]:
    if not counts:
        return None
    # Highest count first, ties broken by name
    person_id, count = min(
        counts.items(), key=lambda item: (-item[1], names.get(item[0], ""))
    )
    return PlayerStat(person_id=person_id, name=names.get(person_id, "Unknown"), count=count)


async def team_stats(
    db: AsyncSession,
    team_id: uuid.UUID,
    actor: Actor,
    now: Optional[datetime] = None,
) -> TeamStatsResponse:
    """
    Attendance rate, most present and most absent player.

    Only past events inside the stats window count (soft-deleted ones
    included). UNKNOWN answers are ignored, and so are rows of private
    events the player was not convoked to.
    """
    team = await get_team_or_404(db, team_id)
    require(actor, Action.VIEW_TEAM, Resource(team_id=team.id))

    now = now or utc_now()
    since = now - timedelta(days=get_settings().STATS_WINDOW_DAYS)

    total_players = await db.execute(
        select(func.count(Player.id)).where(
            Player.team_id == team.id, Player.is_active.is_(True)
        )
    )
    events = await db.execute(
        select(Event.id, Event.visibility).where(
            Event.team_id == team.id, Event.starts_at >= since, Event.starts_at < now
        )
    )
    visibility = {row.id: row.visibility for row in events.all()}

    rows = []
    if visibility:
        result = await db.execute(
            select(Attendance).where(
                Attendance.event_id.in_(list(visibility)),
                Attendance.person_kind == PersonKind.PLAYER,
                Attendance.status != AttendanceStatus.UNKNOWN,
            )
        )
        rows = [
            row
            for row in result.scalars().all()
            if visibility[row.event_id] == Visibility.PUBLIC or row.is_convoked
        ]

    attending = sum(1 for row in rows if row.status in ATTENDING_STATUSES)
    rate = round(attending * 100 / len(rows)) if rows else 0

    presences = Counter(
        row.person_id for row in rows if row.status == AttendanceStatus.PRESENT
    )
    absences = Counter(
        row.person_id for row in rows if row.status == AttendanceStatus.ABSENT
    )
    names = await get_person_names(db, set(presences) | set(absences))

    return TeamStatsResponse(
        team_id=team.id,
        total_players=total_players.scalar_one(),
        total_events=len(visibility),
        attendance_rate=rate,
        top_player=_leader(presences, names),
        flop_player=_leader(absences, names),
    )
