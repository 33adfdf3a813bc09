"""Roster lookups shared by every service: actors, teams, players, guardians."""

import uuid
from typing import Optional

from libs.auth.capabilities import Actor
from libs.auth.models import AuthUser
from libs.common.errors import NotFound, Unauthorized
from services.members_service.models import (
    PersonKind,
    Player,
    Profile,
    Team,
    TeamMember,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


async def load_actor(db: AsyncSession, current_user: AuthUser) -> Actor:
    """Resolve a token subject into an Actor with its team relationships."""
    profile_id = current_user.profile_id
    if profile_id is None:
        raise Unauthorized("Token subject is not a valid user id")

    profile = await db.get(Profile, profile_id)
    if not profile:
        raise NotFound("Profile not found. Please complete registration.")

    coached = await db.execute(select(Team.id).where(Team.coach_id == profile.id))
    memberships = await db.execute(
        select(TeamMember.team_id).where(TeamMember.user_id == profile.id)
    )
    players = await db.execute(
        select(Player.id, Player.team_id).where(
            Player.parent_id == profile.id, Player.is_active.is_(True)
        )
    )
    player_rows = players.all()

    return Actor(
        user_id=profile.id,
        role=profile.role.value,
        full_name=profile.full_name,
        coached_team_ids=frozenset(coached.scalars().all()),
        member_team_ids=frozenset(memberships.scalars().all()),
        managed_player_ids=frozenset(row.id for row in player_rows),
        player_team_ids=frozenset(row.team_id for row in player_rows),
    )


async def get_team_or_404(db: AsyncSession, team_id: uuid.UUID) -> Team:
    team = await db.get(Team, team_id)
    if not team:
        raise NotFound("Team not found")
    return team


async def get_active_roster(
    db: AsyncSession, team_id: uuid.UUID
) -> dict[uuid.UUID, PersonKind]:
    """Map every person on the team's active roster to its kind.

    The roster is the team's active players plus the accounts that joined the
    team (coach included).
    """
    roster: dict[uuid.UUID, PersonKind] = {}

    players = await db.execute(
        select(Player.id).where(Player.team_id == team_id, Player.is_active.is_(True))
    )
    for player_id in players.scalars().all():
        roster[player_id] = PersonKind.PLAYER

    members = await db.execute(
        select(TeamMember.user_id).where(TeamMember.team_id == team_id)
    )
    for user_id in members.scalars().all():
        roster.setdefault(user_id, PersonKind.USER)

    team = await db.get(Team, team_id)
    if team:
        roster.setdefault(team.coach_id, PersonKind.USER)
    return roster


async def resolve_person_kind(
    db: AsyncSession, person_id: uuid.UUID
) -> PersonKind:
    """A person id is a player when a players row exists, a profile otherwise."""
    player = await db.get(Player, person_id)
    return PersonKind.PLAYER if player else PersonKind.USER


async def get_guardian_id(
    db: AsyncSession, player_id: uuid.UUID
) -> Optional[uuid.UUID]:
    result = await db.execute(select(Player.parent_id).where(Player.id == player_id))
    return result.scalar_one_or_none()


async def get_guardian_player_ids(
    db: AsyncSession, guardian_id: uuid.UUID, team_id: Optional[uuid.UUID] = None
) -> list[uuid.UUID]:
    """Active players answered for by ``guardian_id``, optionally on one team."""
    query = select(Player.id).where(
        Player.parent_id == guardian_id, Player.is_active.is_(True)
    )
    if team_id is not None:
        query = query.where(Player.team_id == team_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_person_names(
    db: AsyncSession, person_ids: set[uuid.UUID]
) -> dict[uuid.UUID, str]:
    """Display names for a mix of player and profile ids."""
    if not person_ids:
        return {}
    names: dict[uuid.UUID, str] = {}

    players = await db.execute(
        select(Player.id, Player.full_name).where(Player.id.in_(person_ids))
    )
    for row in players.all():
        names[row.id] = row.full_name

    remaining = person_ids - names.keys()
    if remaining:
        profiles = await db.execute(select(Profile).where(Profile.id.in_(remaining)))
        for profile in profiles.scalars().all():
            names[profile.id] = profile.display_name
    return names
