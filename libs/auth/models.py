import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents an authenticated user from a Supabase access token.

    The application role is not trusted from the token; it is read from the
    ``profiles`` table when the actor is resolved.
    """

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    role: str = "authenticated"

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def profile_id(self) -> Optional[uuid.UUID]:
        """The Supabase user id as a UUID, or None when malformed."""
        try:
            return uuid.UUID(self.user_id)
        except ValueError:
            return None
