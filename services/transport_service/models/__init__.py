"""Transport Service models package."""

from services.transport_service.models.core import Ride, RidePassenger
from services.transport_service.models.enums import (
    DriverRelation,
    RideMode,
    RideRestriction,
)

__all__ = [
    "DriverRelation",
    "Ride",
    "RideMode",
    "RidePassenger",
    "RideRestriction",
]
