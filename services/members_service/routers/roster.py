"""Team roster router: players and team-member profiles."""

import uuid

from fastapi import APIRouter, Depends, status
from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.errors import NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.members_service.models import Player, Profile, TeamMember
from services.members_service.routers._helpers import get_current_actor
from services.members_service.schemas import (
    PlayerCreate,
    PlayerResponse,
    RosterMemberResponse,
    RosterResponse,
)
from services.members_service.services.roster import get_team_or_404
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/teams", tags=["roster"])


@router.get("/{team_id}/roster", response_model=RosterResponse)
async def get_roster(
    team_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Active players (with guardian) and the profiles that joined the team."""
    team = await get_team_or_404(db, team_id)
    require(actor, Action.VIEW_TEAM, Resource(team_id=team.id))

    players = await db.execute(
        select(Player)
        .where(Player.team_id == team.id, Player.is_active.is_(True))
        .order_by(Player.full_name)
    )
    members = await db.execute(
        select(Profile)
        .join(TeamMember, TeamMember.user_id == Profile.id)
        .where(TeamMember.team_id == team.id)
        .order_by(Profile.full_name)
    )

    return RosterResponse(
        team_id=team.id,
        coach_id=team.coach_id,
        players=[PlayerResponse.model_validate(p) for p in players.scalars().all()],
        members=[
            RosterMemberResponse.model_validate(m) for m in members.scalars().all()
        ],
    )


@router.post(
    "/{team_id}/players",
    response_model=PlayerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_player(
    team_id: uuid.UUID,
    player_in: PlayerCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Coach adds a player to the roster, optionally linked to a guardian."""
    team = await get_team_or_404(db, team_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=team.id))

    if player_in.parent_id is not None:
        guardian = await db.get(Profile, player_in.parent_id)
        if not guardian:
            raise NotFound("Guardian profile not found")

    player = Player(
        team_id=team.id,
        full_name=player_in.full_name.strip(),
        parent_id=player_in.parent_id,
        is_active=True,
    )
    db.add(player)
    await db.commit()
    await db.refresh(player)

    logger.info("Player %s added to team %s by %s", player.id, team.id, actor.user_id)
    return player
