from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

VALID_ROLES = ("admin", "moderator", "user")


class RoleAssignment(BaseModel):
    user_id: str
    role: str


class UserWithRoles(BaseModel):
    id: str
    email: str
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    first_name: Optional[str] = None
    avatar_url: Optional[str] = None
    roles: List[str] = []


class UserListResponse(BaseModel):
    users: List[UserWithRoles]
