"""Team statistics router."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.capabilities import Actor
from libs.db.session import get_async_db
from services.events_service.schemas import TeamStatsResponse
from services.events_service.services.stats import team_stats
from services.members_service.routers._helpers import get_current_actor
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/teams", tags=["stats"])


@router.get("/{team_id}/stats", response_model=TeamStatsResponse)
async def get_team_stats(
    team_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_async_db),
):
    return await team_stats(db, team_id, actor)
