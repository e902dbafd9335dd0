from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase_client import supabase

TABLE_NAME = "api_providers"


def fetch_provider(provider_id: str, user_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    query = supabase.table(TABLE_NAME).select("*").eq("id", provider_id)
    if user_id is not None:
        query = query.eq("user_id", user_id)
    response = query.limit(1).execute()
    items = response.data or []
    return items[0] if items else None


def fetch_user_providers(user_id: str) -> List[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return response.data or []


def insert_provider(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store provider")
    return response.data[0]


def delete_provider(user_id: str, provider_id: str) -> bool:
    response = (
        supabase.table(TABLE_NAME)
        .delete()
        .eq("id", provider_id)
        .eq("user_id", user_id)
        .execute()
    )
    return bool(response.data)


def update_balance(
    provider_id: str,
    user_id: str,
    *,
    balance: float,
    currency: str,
    synced_at: datetime,
) -> bool:
    response = (
        supabase.table(TABLE_NAME)
        .update(
            {
                "balance": balance,
                "currency": currency,
                "last_sync_at": synced_at.isoformat(),
            }
        )
        .eq("id", provider_id)
        .eq("user_id", user_id)
        .execute()
    )
    return bool(response.data)
