"""Admin authentication using Supabase Auth bearer tokens and the has_role check."""

from typing import Any

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from content_hub.dependencies import ServiceRegistry, get_registry
from content_hub.log import get_logger

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    registry: ServiceRegistry = Depends(get_registry),
) -> Any:
    """
    Require an authenticated caller holding the admin role.

    The token is resolved with Supabase Auth, then the role is checked with the
    `has_role` database function. Disabled only when require_auth is off.

    Returns:
        The Supabase user, or None when authentication is disabled

    Raises:
        HTTPException: 401 for a missing or invalid token, 403 for a caller
            without the admin role, 503 without Supabase
    """
    if not registry.settings.require_auth:
        return None
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    if registry.supabase is None:
        raise HTTPException(status_code=503, detail="Authentication backend not initialized")

    try:
        response = registry.supabase.auth.get_user(credentials.credentials)
    except Exception as e:
        logger.warning("auth_rejected", error=str(e))
        raise HTTPException(status_code=401, detail="Invalid token") from e

    user = getattr(response, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    if not _has_admin_role(registry.supabase, user.id):
        logger.warning("admin_role_missing", user_id=user.id)
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def _has_admin_role(supabase, user_id: str) -> bool:
    try:
        response = supabase.rpc("has_role", {"_user_id": user_id, "_role": "admin"}).execute()
    except Exception as e:
        logger.warning("role_check_failed", user_id=user_id, error=str(e))
        return False
    return bool(response.data)
