from typing import Any, Dict, List, Optional

from supabase_client import supabase

TABLE_NAME = "orders"
TERMINAL_STATUSES = ("completed", "cancelled", "refunded", "failed")
STATUS_SELECT = "*, services(provider_id, api_providers(*))"


def fetch_order(order_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("*")
        .eq("id", order_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def fetch_order_with_provider(order_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select(STATUS_SELECT)
        .eq("id", order_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def fetch_open_orders(limit: int = 100) -> List[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select(STATUS_SELECT)
        .not_.is_("external_order_id", "null")
        .not_.in_("status", list(TERMINAL_STATUSES))
        .limit(limit)
        .execute()
    )
    return response.data or []


def update_order(order_id: str, fields: Dict[str, Any]) -> None:
    supabase.table(TABLE_NAME).update(fields).eq("id", order_id).execute()
