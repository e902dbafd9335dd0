from typing import Any, Dict, List, Optional

from supabase_client import supabase

PROFILES_TABLE = "profiles"
ROLES_TABLE = "user_roles"


def is_admin(user_id: str) -> bool:
    response = supabase.rpc("is_admin", {"_user_id": user_id}).execute()
    return bool(response.data)


def set_two_factor_enabled(user_id: str, enabled: bool) -> None:
    (
        supabase.table(PROFILES_TABLE)
        .update({"two_factor_enabled": enabled})
        .eq("user_id", user_id)
        .execute()
    )


def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    target = email.lower()
    for user in supabase.auth.admin.list_users():
        if (user.email or "").lower() == target:
            return {"id": user.id, "email": user.email}
    return None


def update_password(user_id: str, password: str) -> None:
    supabase.auth.admin.update_user_by_id(user_id, {"password": password})


def fetch_profiles() -> List[Dict[str, Any]]:
    response = (
        supabase.table(PROFILES_TABLE)
        .select("*")
        .order("created_at", desc=True)
        .execute()
    )
    return response.data or []


def fetch_user_emails() -> Dict[str, Optional[str]]:
    return {user.id: user.email for user in supabase.auth.admin.list_users()}


def fetch_user_roles() -> Dict[str, str]:
    response = supabase.table(ROLES_TABLE).select("user_id, role").execute()
    return {row["user_id"]: row["role"] for row in response.data or []}
