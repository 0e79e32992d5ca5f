import hashlib
import time
from supabase import Client
from musicscan.modules.auth.schemas import (
    LoginRequest, RegisterRequest, RefreshRequest, TokenResponse, RegisterResponse,
)
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# Token -> user lookups are cached briefly; the frontend fires many parallel requests per page
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


def _cache_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _cached_user(token: str) -> Optional[Dict[str, Any]]:
    key = _cache_key(token)
    entry = _AUTH_USER_CACHE.get(key)
    if entry is None:
        return None
    user_data, expiry = entry
    if time.monotonic() >= expiry:
        _AUTH_USER_CACHE.pop(key, None)
        return None
    return user_data


def _remember_user(token: str, user_data: Dict[str, Any]) -> None:
    if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
        _AUTH_USER_CACHE[_cache_key(token)] = (user_data, time.monotonic() + _AUTH_CACHE_TTL_SEC)


def _session_tokens(auth_response: Any, fallback_email: Optional[str] = None) -> TokenResponse:
    if not auth_response or not auth_response.user or not auth_response.session:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    session = auth_response.session
    return TokenResponse(
        access_token=session.access_token,
        refresh_token=getattr(session, "refresh_token", None),
        expires_in=getattr(session, "expires_in", None),
        user_id=auth_response.user.id,
        email=auth_response.user.email or fallback_email or "",
    )


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Sign up through Supabase Auth. The profiles row is created by the on-signup trigger."""
        metadata = {"first_name": register_data.first_name} if register_data.first_name else {}
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {"data": metadata},
            })
        except Exception as e:
            message = str(e).lower()
            if "already registered" in message or "already exists" in message:
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {e}")

        if not auth_response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")
        logger.info(f"Registered MusicScan user {auth_response.user.id}")
        return RegisterResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or register_data.email,
            message="Check your inbox to confirm your account",
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
        except Exception as e:
            message = str(e).lower()
            if "invalid" in message or "credentials" in message or "not confirmed" in message:
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {e}")
        return _session_tokens(auth_response, login_data.email)

    def refresh(self, data: RefreshRequest) -> TokenResponse:
        """Trade a refresh token for a new session (the web app keeps users signed in for weeks)."""
        try:
            auth_response = self.supabase.auth.refresh_session(data.refresh_token)
        except Exception as e:
            logger.debug(f"Session refresh failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired refresh token")
        return _session_tokens(auth_response)

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a Supabase JWT to a user dict, using the short-lived cache first."""
        cached = _cached_user(token)
        if cached is not None:
            return cached
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            logger.debug(f"Token validation failed: {error_msg}")
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        }
        _remember_user(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        # Ends the refresh session only; the access token stays valid until it expires
        _AUTH_USER_CACHE.pop(_cache_key(token), None)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign_out failed: {e}")
            return False

    def get_roles(self, user_id: str) -> List[str]:
        """Roles assigned to the user in user_roles"""
        try:
            result = self.supabase.table("user_roles").select("role").eq("user_id", user_id).execute()
            return sorted({r["role"] for r in (result.data or [])})
        except Exception as e:
            logger.error(f"Error getting roles for user {user_id}: {e}")
            return []
