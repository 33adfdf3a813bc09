"""Events Service schemas package."""

from services.events_service.schemas.main import (
    AttendanceResponse,
    AttendanceResult,
    AttendanceUpdate,
    ConvocationRequest,
    ConvocationResult,
    ConvocationUpdate,
    CountResponse,
    EventBase,
    EventCreate,
    EventResponse,
    EventUpdate,
    PlayerStat,
    TeamRequest,
    TeamStatsResponse,
)

__all__ = [
    "AttendanceResponse",
    "AttendanceResult",
    "AttendanceUpdate",
    "ConvocationRequest",
    "ConvocationResult",
    "ConvocationUpdate",
    "CountResponse",
    "EventBase",
    "EventCreate",
    "EventResponse",
    "EventUpdate",
    "PlayerStat",
    "TeamRequest",
    "TeamStatsResponse",
]
