from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import Unauthorized
from libs.common.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> AuthUser:
    """Decode a Supabase HS256 access token into an ``AuthUser``."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            # Supabase audiences vary between projects
            options={"verify_aud": False},
        )
        return AuthUser(**payload)
    except (JWTError, ValidationError) as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise Unauthorized("Invalid or expired token")


async def get_current_user(
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> AuthUser:
    """
    Validate the bearer token and return the authenticated user.
    """
    if token is None or not token.credentials:
        raise Unauthorized("Missing authorization header")
    return decode_access_token(token.credentials)
