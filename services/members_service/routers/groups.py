"""Custom groups router: coach-administered audiences inside a team."""

import uuid
from typing import List

from fastapi import APIRouter, Depends, Response, status
from libs.auth.capabilities import Action, Actor, Resource, require
from libs.common.errors import InvalidInput, NotFound
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.members_service.models import CustomGroup, GroupMember, PersonKind
from services.members_service.routers._helpers import get_current_actor
from services.members_service.schemas import (
    GroupCreate,
    GroupMemberAdd,
    GroupMemberResponse,
    GroupResponse,
)
from services.members_service.services.roster import (
    get_active_roster,
    get_person_names,
    get_team_or_404,
)
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/groups", tags=["groups"])


def _member_row(group_id: uuid.UUID, member_id: uuid.UUID, kind: PersonKind):
    if kind == PersonKind.PLAYER:
        return GroupMember(group_id=group_id, player_id=member_id)
    return GroupMember(group_id=group_id, user_id=member_id)


async def _get_group_or_404(db: AsyncSession, group_id: uuid.UUID) -> CustomGroup:
    group = await db.get(CustomGroup, group_id)
    if not group:
        raise NotFound("Group not found")
    return group


async def _build_responses(
    db: AsyncSession, groups: List[CustomGroup]
) -> List[GroupResponse]:
    if not groups:
        return []
    result = await db.execute(
        select(GroupMember).where(GroupMember.group_id.in_([g.id for g in groups]))
    )
    rows = result.scalars().all()
    names = await get_person_names(db, {row.member_id for row in rows})

    by_group: dict[uuid.UUID, list[GroupMemberResponse]] = {g.id: [] for g in groups}
    for row in rows:
        by_group[row.group_id].append(
            GroupMemberResponse(
                member_id=row.member_id,
                kind=PersonKind.PLAYER if row.player_id else PersonKind.USER,
                name=names.get(row.member_id),
            )
        )

    return [
        GroupResponse(
            id=g.id,
            team_id=g.team_id,
            name=g.name,
            is_broadcast=g.is_broadcast,
            created_at=g.created_at,
            members=by_group[g.id],
        )
        for g in groups
    ]


def _check_on_roster(
    member_ids: List[uuid.UUID], roster: dict[uuid.UUID, PersonKind]
) -> None:
    unknown = [str(m) for m in member_ids if m not in roster]
    if unknown:
        raise InvalidInput(f"Not on the team roster: {', '.join(unknown)}")


@router.get("/{team_id}", response_model=List[GroupResponse])
async def list_groups(
    team_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """List a team's groups with their members."""
    team = await get_team_or_404(db, team_id)
    require(actor, Action.VIEW_TEAM, Resource(team_id=team.id))

    result = await db.execute(
        select(CustomGroup)
        .where(CustomGroup.team_id == team.id)
        .order_by(CustomGroup.name)
    )
    return await _build_responses(db, list(result.scalars().all()))


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_in: GroupCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    team = await get_team_or_404(db, group_in.team_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=team.id))

    member_ids = list(dict.fromkeys(group_in.member_ids))
    roster = await get_active_roster(db, team.id)
    _check_on_roster(member_ids, roster)

    group = CustomGroup(
        team_id=team.id, name=group_in.name.strip(), is_broadcast=group_in.is_broadcast
    )
    db.add(group)
    await db.flush()
    for member_id in member_ids:
        db.add(_member_row(group.id, member_id, roster[member_id]))
    await db.commit()
    await db.refresh(group)

    logger.info(
        "Group %s created for team %s with %d members",
        group.id,
        team.id,
        len(member_ids),
    )
    return (await _build_responses(db, [group]))[0]


@router.post("/{group_id}/members", response_model=GroupResponse)
async def add_group_member(
    group_id: uuid.UUID,
    member_in: GroupMemberAdd,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    """Add a roster member to a group. Adding an existing member is a no-op."""
    group = await _get_group_or_404(db, group_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=group.team_id))

    roster = await get_active_roster(db, group.team_id)
    _check_on_roster([member_in.member_id], roster)

    existing = await db.execute(
        select(GroupMember.id).where(
            GroupMember.group_id == group.id,
            or_(
                GroupMember.player_id == member_in.member_id,
                GroupMember.user_id == member_in.member_id,
            ),
        )
    )
    if existing.scalar_one_or_none() is None:
        db.add(_member_row(group.id, member_in.member_id, roster[member_in.member_id]))
        await db.commit()

    return (await _build_responses(db, [group]))[0]


@router.delete(
    "/{group_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_group_member(
    group_id: uuid.UUID,
    member_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    group = await _get_group_or_404(db, group_id)
    require(actor, Action.MANAGE_TEAM, Resource(team_id=group.team_id))

    await db.execute(
        delete(GroupMember).where(
            GroupMember.group_id == group.id,
            or_(GroupMember.player_id == member_id, GroupMember.user_id == member_id),
        )
    )
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
