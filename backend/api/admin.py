from fastapi import APIRouter, Depends

from auth import get_admin_user_id
from schemas import AdminUserListResponse
from services.admin_users_service import list_users

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=AdminUserListResponse)
async def read_users(
    user_id: str = Depends(get_admin_user_id),
) -> AdminUserListResponse:
    return AdminUserListResponse(items=await list_users())
