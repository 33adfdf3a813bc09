"""Helpers for classifying database errors."""

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """Return True when ``exc`` was raised by a unique constraint.

    PostgreSQL drivers expose SQLSTATE 23505; SQLite only reports it in the
    message text.
    """
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION
    message = str(orig or exc)
    return "UNIQUE constraint failed" in message or "duplicate key" in message
