from datetime import datetime
from typing import Any, Dict, Optional

from supabase_client import supabase

TWO_FACTOR_TABLE = "two_factor_codes"
PASSWORD_RESET_TABLE = "password_resets"


def fetch_active_code(
    table: str, subject_field: str, subject: str, now: datetime
) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(table)
        .select("*")
        .eq(subject_field, subject)
        .eq("used", False)
        .gt("expires_at", now.isoformat())
        .order("created_at", desc=True)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def fetch_active_by_hash(
    table: str, email: str, code_hash: str, now: datetime
) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(table)
        .select("*")
        .eq("email", email)
        .eq("code_hash", code_hash)
        .eq("used", False)
        .gt("expires_at", now.isoformat())
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def count_recent(table: str, subject_field: str, subject: str, since: datetime) -> int:
    response = (
        supabase.table(table)
        .select("id")
        .eq(subject_field, subject)
        .gte("created_at", since.isoformat())
        .execute()
    )
    return len(response.data or [])


def insert_code(table: str, record: Dict[str, Any]) -> None:
    response = supabase.table(table).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store verification code")


def delete_unused(table: str, subject_field: str, subject: str) -> None:
    (
        supabase.table(table)
        .delete()
        .eq(subject_field, subject)
        .eq("used", False)
        .execute()
    )


def update_code(table: str, record_id: str, **fields: Any) -> None:
    supabase.table(table).update(fields).eq("id", record_id).execute()
