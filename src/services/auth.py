"""Caller identity from Supabase Auth plus the role stored on the profile."""

from typing import Any, Mapping, Optional
from pydantic import ValidationError

from src.models.principal import Principal
from src.services.supabase_client import execute
from src.utils.errors import AuthenticationRequiredError, MalformedRecordError, PermissionDeniedError
from src.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)

PROFILES_TABLE = "profiles"


def bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Extract the access token from an Authorization header (case-insensitive)."""
    for name, value in (headers or {}).items():
        if name.lower() == "authorization" and value:
            scheme, _, token = value.partition(" ")
            if scheme.lower() == "bearer" and token.strip():
                return token.strip()
    return None


@timed("resolve principal")
async def resolve_principal(client: Any, access_token: Optional[str]) -> Optional[Principal]:
    """Verify the token and load `{uid, role}`; None when unauthenticated.

    An invalid or expired token, or a user without a profile, is treated as
    anonymous rather than as an error.
    """
    if not access_token:
        return None

    try:
        response = client.auth.get_user(access_token)
    except Exception as e:
        logger.warning("Access token verification failed", error=str(e))
        return None

    user = getattr(response, "user", None)
    if user is None:
        return None

    rows = execute(
        client.table(PROFILES_TABLE).select("id, role, display_name, photo_url").eq("id", user.id).limit(1),
        "get profile",
    )
    if not rows:
        logger.info("Authenticated user has no profile", uid=mask_user_id(user.id))
        return None

    profile = rows[0]
    try:
        return Principal(
            uid=user.id,
            role=profile.get("role") or "BUYER",
            display_name=profile.get("display_name") or "",
            photo_url=profile.get("photo_url") or "",
        )
    except ValidationError as e:
        raise MalformedRecordError(f"Malformed profile for {mask_user_id(user.id)}: {e}") from e


def require_principal(principal: Optional[Principal]) -> Principal:
    if principal is None:
        raise AuthenticationRequiredError("Authentication required. Please log in.")
    return principal


def require_admin(principal: Optional[Principal]) -> Principal:
    principal = require_principal(principal)
    if not principal.is_admin:
        raise PermissionDeniedError("Authorization required: only admins may perform this action.")
    return principal
