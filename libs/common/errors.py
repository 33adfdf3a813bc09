"""Application error taxonomy.

Service code raises these; ``libs.common.error_handler`` turns them into
``{"error": message, "code": code}`` JSON responses.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "STORE_FAILURE"
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Could not validate credentials"


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "You are not allowed to perform this action"


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class InvalidInput(AppError):
    status_code = 400
    code = "INVALID_INPUT"
    default_message = "Invalid input"


class NotEligible(AppError):
    status_code = 422
    code = "NOT_ELIGIBLE"
    default_message = "Attendance must be PRESENT or LATE for this event"


class DuplicateRide(AppError):
    status_code = 409
    code = "DUPLICATE_RIDE"
    default_message = "You already offer a ride for this event"


class AlreadyOnRide(AppError):
    status_code = 409
    code = "ALREADY_ON_RIDE"
    default_message = "This person is already on this ride"


class RideFull(AppError):
    status_code = 409
    code = "RIDE_FULL"
    default_message = "Not enough seats left on this ride"


class StoreFailure(AppError):
    """Downstream database failure; the driver message is passed through."""
