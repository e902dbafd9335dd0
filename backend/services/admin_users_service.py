import asyncio
from typing import List

from repositories.users_repository import fetch_profiles, fetch_user_emails, fetch_user_roles
from schemas import AdminUser

DEFAULT_ROLE = "user"


async def list_users() -> List[AdminUser]:
    profiles, emails, roles = await asyncio.gather(
        asyncio.to_thread(fetch_profiles),
        asyncio.to_thread(fetch_user_emails),
        asyncio.to_thread(fetch_user_roles),
    )
    return [
        AdminUser(
            **{
                **profile,
                "email": emails.get(profile["user_id"]),
                "role": roles.get(profile["user_id"], DEFAULT_ROLE),
            }
        )
        for profile in profiles
    ]
