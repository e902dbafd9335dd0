from typing import Any, Dict, Optional

from supabase_client import supabase

TABLE_NAME = "services"


def fetch_service_with_provider(service_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("*, api_providers(*)")
        .eq("id", service_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def find_imported_service(external_service_id: str, provider_id: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TABLE_NAME)
        .select("id")
        .eq("external_service_id", external_service_id)
        .eq("provider_id", provider_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def insert_service(record: Dict[str, Any]) -> None:
    response = supabase.table(TABLE_NAME).insert(record).execute()
    if not response.data:
        raise RuntimeError(f"Failed to import service {record.get('external_service_id')}")


def update_service(service_id: str, fields: Dict[str, Any]) -> None:
    supabase.table(TABLE_NAME).update(fields).eq("id", service_id).execute()
