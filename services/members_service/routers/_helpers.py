"""Shared dependencies for routers across the team services."""

from fastapi import Depends
from libs.auth.capabilities import Actor
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.members_service.services.roster import load_actor
from sqlalchemy.ext.asyncio import AsyncSession


async def get_current_actor(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> Actor:
    """Resolve the authenticated Supabase user to an Actor."""
    return await load_actor(db, current_user)
