from fastapi import APIRouter, Depends
from musicscan.database.supabase_client import get_service_supabase
from musicscan.modules.roles.schemas import RoleAssignment, UserListResponse
from musicscan.modules.roles.service import RoleService
from musicscan.core.dependencies import require_admin
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/admin/users", tags=["roles"])


def get_role_service(supabase: Client = Depends(get_service_supabase)) -> RoleService:
    return RoleService(supabase)


@router.get("", response_model=UserListResponse)
async def list_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service),
):
    """List all users with their roles"""
    return UserListResponse(users=service.list_users(search=search, role=role))


@router.post("/roles", status_code=200)
async def assign_role(
    data: RoleAssignment,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service),
):
    """Assign a role to a user"""
    service.assign_role(data.user_id, data.role)
    return {"success": True, "message": "Role assigned successfully"}


@router.delete("/roles", status_code=200)
async def remove_role(
    data: RoleAssignment,
    user_data: Dict = Depends(require_admin),
    service: RoleService = Depends(get_role_service),
):
    """Remove a role from a user"""
    service.remove_role(data.user_id, data.role)
    return {"success": True, "message": "Role removed successfully"}
