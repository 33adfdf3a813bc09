"""Transport Service schemas package."""

from services.transport_service.schemas.main import (
    RideCreate,
    RideJoin,
    RidePassengerResponse,
    RideResponse,
)

__all__ = [
    "RideCreate",
    "RideJoin",
    "RidePassengerResponse",
    "RideResponse",
]
