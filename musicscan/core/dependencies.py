"""
Core dependencies for route protection and role checking
"""

import hmac
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from musicscan.config import settings
from musicscan.database.supabase_client import get_service_supabase, get_supabase
from musicscan.modules.auth.service import AuthService

logger = logging.getLogger(__name__)

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache for role lookups."""
    if not hasattr(request.state, "role_cache"):
        request.state.role_cache = {}
    return request.state.role_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Resolve the Supabase user behind the bearer token"""
    return auth_service.get_current_user(credentials.credentials)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Like get_current_user, but guests (no bearer token) resolve to None."""
    if credentials is None:
        return None
    return auth_service.get_current_user(credentials.credentials)


def has_role(user_id: str, role: str, supabase: Client, cache: Optional[Dict[str, Any]] = None) -> bool:
    """Ask the has_role() database function. Errors count as 'no role'."""
    key = f"role:{role}"
    if cache is not None and key in cache:
        return cache[key]
    try:
        result = supabase.rpc("has_role", {"_user_id": user_id, "_role": role}).execute()
        allowed = bool(result.data)
    except Exception as e:
        logger.error(f"Error checking role {role} for user {user_id}: {e}")
        allowed = False
    if cache is not None:
        cache[key] = allowed
    return allowed


def require_role(required_role: str):
    """Factory function to create a role check dependency"""
    def check_role(
        request: Request,
        user_data: dict = Depends(get_current_user),
        supabase: Client = Depends(get_service_supabase)
    ) -> dict:
        cache = _get_request_cache(request)
        if not has_role(user_data["id"], required_role, supabase, cache):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Forbidden: {required_role} access required"
            )
        return user_data
    return check_role


require_admin = require_role("admin")


def require_cron_or_admin(
    request: Request,
    x_cron_secret: Optional[str] = Header(default=None),
    credentials: Optional[HTTPAuthorizationCredentials] = Security(optional_security),
    supabase: Client = Depends(get_supabase),
    service_supabase: Client = Depends(get_service_supabase),
) -> dict:
    """Scheduled jobs authenticate with X-Cron-Secret; admins can trigger the same routes manually."""
    if settings.cron_secret and x_cron_secret and hmac.compare_digest(x_cron_secret.encode(), settings.cron_secret.encode()):
        return {"id": None, "email": None, "cron": True}
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    user_data = AuthService(supabase).get_current_user(credentials.credentials)
    if not has_role(user_data["id"], "admin", service_supabase, _get_request_cache(request)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: admin access required")
    return user_data
