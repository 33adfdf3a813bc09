"""Attendance status engine."""

import uuid
from typing import Optional

from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.errors import InvalidInput
from libs.common.logging import get_logger
from services.events_service.models import (
    UNAVAILABLE_STATUSES,
    Attendance,
    AttendanceStatus,
    Event,
)
from services.events_service.services.convocations import (
    AttendancePatch,
    upsert_attendance,
)
from services.members_service.models import PersonKind
from services.members_service.services.roster import get_active_roster
from services.transport_service.services.rides import cascade_unavailability
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def set_status(
    db: AsyncSession,
    event: Event,
    person_id: uuid.UUID,
    status: AttendanceStatus,
    actor: Actor,
    person_kind: Optional[PersonKind] = None,
) -> tuple[Attendance, list[uuid.UUID]]:
    """
    Record a person's status for an event and cascade ride cleanup.

    - Guardians answer for their players while the event is upcoming
    - Coaches answer for themselves, or for any player of their team
    - A coach setting someone else's status locks the row; self and
      guardian reports unlock it
    - ABSENT, SICK and INJURED cancel rides that no longer have a reason to
      exist, in the same transaction as the status write

    Returns the stored row and the ids of cancelled rides.
    """
    event_id, team_id, starts_at = event.id, event.team_id, event.starts_at
    require(
        actor,
        Action.SET_ATTENDANCE,
        Resource(team_id=team_id, person_id=person_id, starts_at=starts_at),
    )

    roster = await get_active_roster(db, team_id)
    if person_id not in roster:
        raise InvalidInput(f"Not on the team roster: {person_id}")

    # The roster decides the kind; it picks the cascade branch below
    if person_kind is not None and person_kind != roster[person_id]:
        raise InvalidInput(
            f"{person_id} is a {roster[person_id].value}, not a {person_kind.value}"
        )
    person_kind = roster[person_id]

    locked = person_id != actor.user_id and actor.coaches(team_id)
    row, _ = await upsert_attendance(
        db,
        event_id,
        person_id,
        AttendancePatch(person_kind=person_kind, status=status, is_locked=locked),
    )

    cancelled: list[uuid.UUID] = []
    if status in UNAVAILABLE_STATUSES:
        cancelled = await cascade_unavailability(db, event_id, person_id, person_kind)

    await db.commit()
    await db.refresh(row)

    logger.info(
        "Attendance for event %s person %s set to %s by %s",
        event_id,
        person_id,
        status.value,
        actor.user_id,
    )
    return row, cancelled
