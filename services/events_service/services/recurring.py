"""Weekly projection of recurring events."""

import uuid
from datetime import timedelta
from typing import Optional

from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_utc
from libs.common.logging import get_logger
from services.events_service.models import (
    Attendance,
    AttendanceStatus,
    Event,
    RecurrencePattern,
)
from services.members_service.services.roster import get_team_or_404
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

# Fields carried from a template to its next occurrence
COPIED_FIELDS = (
    "team_id",
    "coach_id",
    "group_id",
    "event_type",
    "location",
    "notes",
    "visibility",
    "match_location",
)


async def generate_recurring(
    db: AsyncSession,
    team_id: uuid.UUID,
    actor: Actor,
    interval_days: Optional[int] = None,
) -> int:
    """
    Create the next occurrence of every recurring template of a team.

    Each occurrence starts ``interval_days`` after its template and gets the
    template's convoked people as fresh ``UNKNOWN`` rows. Occurrences that
    already exist (even soft-deleted) are skipped. Templates commit one by
    one; a failing template is logged and skipped. Returns the number of
    events created.
    """
    team = await get_team_or_404(db, team_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=team.id))
    interval = timedelta(days=interval_days or get_settings().RECURRENCE_INTERVAL_DAYS)

    result = await db.execute(
        select(Event)
        .where(
            Event.team_id == team.id,
            Event.is_recurring.is_(True),
            Event.is_deleted.is_(False),
        )
        .order_by(Event.starts_at)
    )
    templates = list(result.scalars().all())
    if not templates:
        return 0

    convoked = await db.execute(
        select(Attendance.event_id, Attendance.person_id, Attendance.person_kind).where(
            Attendance.event_id.in_([t.id for t in templates]),
            Attendance.is_convoked.is_(True),
        )
    )
    convoked_by_template: dict[uuid.UUID, list] = {t.id: [] for t in templates}
    for row in convoked.all():
        convoked_by_template[row.event_id].append((row.person_id, row.person_kind))

    # Plain values only: a rollback below expires every loaded instance
    snapshots = [
        {
            "id": t.id,
            "starts_at": ensure_utc(t.starts_at),
            "fields": {name: getattr(t, name) for name in COPIED_FIELDS},
        }
        for t in templates
    ]

    count = 0
    for snapshot in snapshots:
        fields = snapshot["fields"]
        target = snapshot["starts_at"] + interval

        existing = await db.execute(
            select(Event.id).where(
                Event.team_id == fields["team_id"],
                Event.event_type == fields["event_type"],
                Event.starts_at == target,
            )
        )
        if existing.first() is not None:
            continue

        try:
            occurrence = Event(
                **fields,
                starts_at=target,
                is_recurring=True,
                recurrence_pattern=RecurrencePattern.WEEKLY,
            )
            db.add(occurrence)
            await db.flush()
            for person_id, person_kind in convoked_by_template[snapshot["id"]]:
                db.add(
                    Attendance(
                        event_id=occurrence.id,
                        person_id=person_id,
                        person_kind=person_kind,
                        status=AttendanceStatus.UNKNOWN,
                        is_convoked=True,
                        is_locked=False,
                    )
                )
            await db.commit()
            count += 1
        except SQLAlchemyError:
            await db.rollback()
            logger.exception(
                "Failed to generate the occurrence of template %s", snapshot["id"]
            )

    logger.info("Generated %d recurring events for team %s", count, team_id)
    return count
