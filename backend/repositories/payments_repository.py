from typing import Any, Dict, Optional

from supabase_client import supabase

TRANSACTIONS_TABLE = "transactions"
PROFILES_TABLE = "profiles"


def fetch_profile_balance(user_id: str) -> Optional[float]:
    response = (
        supabase.table(PROFILES_TABLE)
        .select("balance")
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    )
    items = response.data or []
    if not items:
        return None
    return float(items[0].get("balance") or 0)


def update_profile_balance(user_id: str, balance: float) -> bool:
    response = (
        supabase.table(PROFILES_TABLE)
        .update({"balance": balance})
        .eq("user_id", user_id)
        .execute()
    )
    return bool(response.data)


def fetch_transaction_by_reference(reference: str) -> Optional[Dict[str, Any]]:
    response = (
        supabase.table(TRANSACTIONS_TABLE)
        .select("*")
        .eq("payment_reference", reference)
        .limit(1)
        .execute()
    )
    items = response.data or []
    return items[0] if items else None


def insert_transaction(record: Dict[str, Any]) -> Dict[str, Any]:
    response = supabase.table(TRANSACTIONS_TABLE).insert(record).execute()
    if not response.data:
        raise RuntimeError("Failed to store transaction")
    return response.data[0]


def claim_transaction(
    transaction_id: str,
    pending_balance: float,
    *,
    balance_before: float,
    balance_after: float,
    description: str,
) -> bool:
    """Settle a pending deposit row; only one caller can win the update."""
    response = (
        supabase.table(TRANSACTIONS_TABLE)
        .update(
            {
                "balance_before": balance_before,
                "balance_after": balance_after,
                "description": description,
            }
        )
        .eq("id", transaction_id)
        .eq("balance_before", pending_balance)
        .eq("balance_after", pending_balance)
        .execute()
    )
    return bool(response.data)


def release_transaction(transaction_id: str, balance: float) -> None:
    (
        supabase.table(TRANSACTIONS_TABLE)
        .update({"balance_before": balance, "balance_after": balance})
        .eq("id", transaction_id)
        .execute()
    )
