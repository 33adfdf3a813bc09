"""Convocation reconciliation and attendance upserts.

Attendance rows are keyed by (event, person). Every write goes through
:func:`upsert_attendance`, which merges a partial patch over the stored row
with :func:`merge_attendance` and only touches attributes whose value changes.
"""

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.errors import InvalidInput
from libs.common.logging import get_logger
from libs.db.errors import is_unique_violation
from services.events_service.models import Attendance, AttendanceStatus, Event
from services.members_service.models import PersonKind
from services.members_service.services.roster import get_active_roster
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ATTENDANCE_DEFAULTS = {
    "person_kind": PersonKind.PLAYER,
    "status": AttendanceStatus.UNKNOWN,
    "is_convoked": False,
    "is_locked": False,
}


@dataclass(frozen=True)
class AttendancePatch:
    """Partial attendance update. ``None`` means "leave as is"."""

    person_kind: Optional[PersonKind] = None
    status: Optional[AttendanceStatus] = None
    is_convoked: Optional[bool] = None
    is_locked: Optional[bool] = None


def merge_attendance(existing: Optional[Attendance], patch: AttendancePatch) -> dict:
    """Resolve the stored fields of an attendance row.

    Precedence per field: the patch value, then the existing row's value,
    then the default (``UNKNOWN`` status, not convoked, not locked).
    """
    merged = {}
    for field, default in ATTENDANCE_DEFAULTS.items():
        value = getattr(patch, field)
        if value is None and existing is not None:
            value = getattr(existing, field)
        merged[field] = default if value is None else value
    return merged


def _apply(row: Attendance, fields: dict) -> bool:
    changed = False
    for field, value in fields.items():
        if getattr(row, field) != value:
            setattr(row, field, value)
            changed = True
    return changed


async def get_attendance_row(
    db: AsyncSession, event_id: uuid.UUID, person_id: uuid.UUID
) -> Optional[Attendance]:
    result = await db.execute(
        select(Attendance).where(
            Attendance.event_id == event_id, Attendance.person_id == person_id
        )
    )
    return result.scalar_one_or_none()


async def list_attendance(db: AsyncSession, event_id: uuid.UUID) -> list[Attendance]:
    result = await db.execute(
        select(Attendance)
        .where(Attendance.event_id == event_id)
        .order_by(Attendance.created_at)
    )
    return list(result.scalars().all())


async def upsert_attendance(
    db: AsyncSession,
    event_id: uuid.UUID,
    person_id: uuid.UUID,
    patch: AttendancePatch,
) -> tuple[Attendance, bool]:
    """Insert or update the (event, person) row. Returns ``(row, changed)``.

    The row is flushed, not committed. An insert that loses a race against a
    concurrent insert of the same key is retried as an update (last write
    wins); the retry rolls the session back, so callers must not hold other
    uncommitted work when calling this.
    """
    existing = await get_attendance_row(db, event_id, person_id)
    if existing is not None:
        return existing, _apply(existing, merge_attendance(existing, patch))

    row = Attendance(
        event_id=event_id, person_id=person_id, **merge_attendance(None, patch)
    )
    db.add(row)
    try:
        await db.flush()
    except IntegrityError as exc:
        if not is_unique_violation(exc):
            raise
        await db.rollback()
        logger.info(
            "Concurrent attendance insert for event %s person %s, updating instead",
            event_id,
            person_id,
        )
        existing = await get_attendance_row(db, event_id, person_id)
        if existing is None:
            raise
        _apply(existing, merge_attendance(existing, patch))
        await db.flush()
        return existing, True
    return row, True


async def ensure_on_roster(
    db: AsyncSession, team_id: uuid.UUID, person_ids: Iterable[uuid.UUID]
) -> dict[uuid.UUID, PersonKind]:
    """Return the active roster, rejecting ids that are not on it."""
    roster = await get_active_roster(db, team_id)
    unknown = [str(person_id) for person_id in person_ids if person_id not in roster]
    if unknown:
        raise InvalidInput(f"Not on the team roster: {', '.join(unknown)}")
    return roster


async def reconcile_convocations(
    db: AsyncSession,
    event: Event,
    target_ids: Iterable[uuid.UUID],
    actor: Actor,
) -> int:
    """Make ``target_ids`` the exact convoked set of ``event``.

    Recorded statuses are never touched: new rows start ``UNKNOWN``, people
    dropped from the set keep their status with ``is_convoked`` cleared. Every
    row the edit touches is locked. Each changed row commits on its own and
    the number of changed rows is returned; a resubmitted set returns 0.
    """
    event_id, team_id = event.id, event.team_id
    require(actor, Action.MANAGE_TEAM, Resource(team_id=team_id))

    targets = list(dict.fromkeys(target_ids))
    roster = await ensure_on_roster(db, team_id, targets)

    existing = await list_attendance(db, event_id)
    target_set = set(targets)
    dropped = [
        row.person_id
        for row in existing
        if row.is_convoked and row.person_id not in target_set
    ]

    plan = [
        (
            person_id,
            AttendancePatch(
                person_kind=roster[person_id], is_convoked=True, is_locked=True
            ),
        )
        for person_id in targets
    ]
    plan += [
        (person_id, AttendancePatch(is_convoked=False, is_locked=True))
        for person_id in dropped
    ]

    changed = 0
    for person_id, patch in plan:
        _, did_change = await upsert_attendance(db, event_id, person_id, patch)
        if did_change:
            await db.commit()
            changed += 1

    logger.info(
        "Convocations for event %s: %d convoked, %d released, %d rows changed",
        event_id,
        len(targets),
        len(dropped),
        changed,
    )
    return changed


def apply_convocation_delta(
    convoked_ids: Iterable[uuid.UUID], updates: Iterable[tuple[uuid.UUID, bool]]
) -> list[uuid.UUID]:
    """Turn ``(person_id, is_convoked)`` updates into a full target set."""
    target = list(dict.fromkeys(convoked_ids))
    for person_id, is_convoked in updates:
        if is_convoked and person_id not in target:
            target.append(person_id)
        elif not is_convoked and person_id in target:
            target.remove(person_id)
    return target
