"""Capability checks for mutating operations.

Every route resolves the caller into an :class:`Actor` and asks
:func:`authorize` whether ``(actor, action, resource)`` is allowed before it
touches the store. :func:`require` is the raising shortcut.
"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.errors import Forbidden

ROLE_ADMIN = "ADMIN"
ROLE_COACH = "COACH"


class Action(str, enum.Enum):
    MANAGE_TEAM = "manage_team"  # events, convocations, groups, roster
    VIEW_TEAM = "view_team"
    SET_ATTENDANCE = "set_attendance"
    OFFER_RIDE = "offer_ride"
    JOIN_RIDE = "join_ride"
    LEAVE_RIDE = "leave_ride"
    DELETE_RIDE = "delete_ride"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller and the relationships that grant access."""

    user_id: uuid.UUID
    role: str
    full_name: Optional[str] = None
    coached_team_ids: frozenset = field(default_factory=frozenset)
    member_team_ids: frozenset = field(default_factory=frozenset)
    managed_player_ids: frozenset = field(default_factory=frozenset)
    # team of each managed player, for team-scoped checks
    player_team_ids: frozenset = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def coaches(self, team_id: uuid.UUID) -> bool:
        return self.is_admin or team_id in self.coached_team_ids

    def belongs_to(self, team_id: uuid.UUID) -> bool:
        return (
            self.coaches(team_id)
            or team_id in self.member_team_ids
            or team_id in self.player_team_ids
        )

    def manages(self, person_id: uuid.UUID) -> bool:
        return person_id in self.managed_player_ids

    def acts_for(self, person_id: uuid.UUID) -> bool:
        """True when ``person_id`` is the actor itself or one of its players."""
        return person_id == self.user_id or self.manages(person_id)


@dataclass(frozen=True)
class Resource:
    """What an action targets. Unused fields stay None."""

    team_id: Optional[uuid.UUID] = None
    person_id: Optional[uuid.UUID] = None
    driver_id: Optional[uuid.UUID] = None
    starts_at: Optional[datetime] = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOWED = Decision(True)


def _denied(reason: str) -> Decision:
    return Decision(False, reason)


def _can_set_attendance(actor: Actor, resource: Resource) -> Decision:
    if resource.person_id == actor.user_id:
        # Self-report (coach identity rows)
        if resource.team_id is None or actor.belongs_to(resource.team_id):
            return ALLOWED
        return _denied("You are not part of this team")
    if resource.team_id is not None and actor.coaches(resource.team_id):
        return ALLOWED
    if actor.manages(resource.person_id):
        starts_at = ensure_utc(resource.starts_at)
        if starts_at is not None and starts_at <= utc_now():
            return _denied("Attendance can no longer be changed for a past event")
        return ALLOWED
    return _denied("You can only answer for yourself or your own players")


def _can_ride(actor: Actor, resource: Resource) -> Decision:
    if not actor.belongs_to(resource.team_id):
        return _denied("You are not part of this team")
    if resource.person_id == actor.user_id:
        if actor.coaches(resource.team_id):
            return ALLOWED
        return _denied("Only coaches can ride for themselves; pick one of your players")
    if actor.manages(resource.person_id):
        return ALLOWED
    return _denied("You can only act for yourself or your own players")


def authorize(actor: Actor, action: Action, resource: Resource) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on ``resource``."""
    if action is Action.MANAGE_TEAM:
        if resource.team_id is not None and actor.coaches(resource.team_id):
            return ALLOWED
        return _denied("Coach privileges required")

    if action is Action.VIEW_TEAM:
        if resource.team_id is not None and actor.belongs_to(resource.team_id):
            return ALLOWED
        return _denied("You are not part of this team")

    if action is Action.SET_ATTENDANCE:
        return _can_set_attendance(actor, resource)

    if action in (Action.OFFER_RIDE, Action.JOIN_RIDE):
        return _can_ride(actor, resource)

    if action is Action.LEAVE_RIDE:
        if actor.acts_for(resource.person_id) or actor.user_id == resource.driver_id:
            return ALLOWED
        return _denied("You can only remove yourself, your players or your own passengers")

    if action is Action.DELETE_RIDE:
        if actor.user_id == resource.driver_id:
            return ALLOWED
        return _denied("Only the driver can delete this ride")

    return _denied(f"Unknown action {action}")


def require(actor: Actor, action: Action, resource: Resource) -> None:
    """Raise ``Forbidden`` unless the action is allowed."""
    decision = authorize(actor, action, resource)
    if not decision.allowed:
        raise Forbidden(decision.reason)
