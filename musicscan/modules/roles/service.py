from supabase import Client
from musicscan.modules.roles.schemas import UserWithRoles, VALID_ROLES
from typing import List, Optional, Dict
from musicscan.core.utils import is_duplicate_error
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_users(self, search: Optional[str] = None, role: Optional[str] = None) -> List[UserWithRoles]:
        """All auth users joined with their profile and roles, optionally filtered."""
        try:
            auth_users = self.supabase.auth.admin.list_users()
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to fetch users: {e}")

        profiles: Dict[str, dict] = {}
        try:
            profiles_result = self.supabase.table("profiles").select("user_id, first_name, avatar_url").execute()
            profiles = {p["user_id"]: p for p in (profiles_result.data or [])}
        except Exception as e:
            logger.error(f"Error fetching profiles: {e}")

        try:
            roles_result = self.supabase.table("user_roles").select("user_id, role").execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to fetch roles: {e}")
        roles_by_user: Dict[str, List[str]] = {}
        for r in roles_result.data or []:
            roles_by_user.setdefault(r["user_id"], []).append(r["role"])

        users = []
        for auth_user in auth_users or []:
            profile = profiles.get(auth_user.id, {})
            users.append(UserWithRoles(
                id=auth_user.id,
                email=auth_user.email or "",
                created_at=getattr(auth_user, "created_at", None),
                last_sign_in_at=getattr(auth_user, "last_sign_in_at", None),
                first_name=profile.get("first_name"),
                avatar_url=profile.get("avatar_url"),
                roles=sorted(roles_by_user.get(auth_user.id, [])),
            ))

        if search:
            query = search.lower()
            users = [
                u for u in users
                if query in u.email.lower() or query in (u.first_name or "").lower()
            ]
        if role:
            users = [u for u in users if role in u.roles]
        return users

    def assign_role(self, user_id: str, role: str) -> None:
        if role not in VALID_ROLES:
            raise HTTPException(status_code=400, detail="Invalid role")
        try:
            self.supabase.table("user_roles").insert({"user_id": user_id, "role": role}).execute()
        except Exception as e:
            if is_duplicate_error(e):
                raise HTTPException(status_code=409, detail="User already has this role")
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Assigned role {role} to user {user_id}")

    def remove_role(self, user_id: str, role: str) -> None:
        if role not in VALID_ROLES:
            raise HTTPException(status_code=400, detail="Invalid role")
        try:
            self.supabase.table("user_roles").delete().eq("user_id", user_id).eq("role", role).execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Removed role {role} from user {user_id}")
