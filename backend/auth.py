import asyncio

from fastapi import Depends, Header, HTTPException, status
import httpx

from config import settings
from repositories.users_repository import is_admin


async def _fetch_user(access_token: str) -> dict:
    headers = {
        "Authorization": f"Bearer {access_token}",
        "apikey": settings.supabase_service_role_key,
    }
    url = f"{settings.supabase_url}/auth/v1/user"
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.get(url, headers=headers)
    if response.status_code != 200:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )
    return response.json()


async def get_current_user_id(
    authorization: str | None = Header(default=None, convert_underscores=False),
) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="No authorization header"
        )
    token = authorization.split(" ", 1)[1]
    user = await _fetch_user(token)
    user_id = user.get("id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
        )
    return user_id


async def user_is_admin(user_id: str) -> bool:
    return await asyncio.to_thread(is_admin, user_id)


async def get_admin_user_id(user_id: str = Depends(get_current_user_id)) -> str:
    if not await user_is_admin(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
        )
    return user_id


async def ensure_owner_or_admin(user_id: str, owner_id: str | None) -> None:
    if owner_id and owner_id == user_id:
        return
    if await user_is_admin(user_id):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
