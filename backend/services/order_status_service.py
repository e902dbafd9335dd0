import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from auth import ensure_owner_or_admin, user_is_admin
from repositories.orders_repository import (
    fetch_open_orders,
    fetch_order_with_provider,
    update_order,
)
from schemas import CheckStatusResponse
from services.providers_service import create_provider_client
from smm_api import map_status, parse_int

logger = logging.getLogger("smm-panel")

CHECK_ALL_LIMIT = 100


def _order_provider(order: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    service = order.get("services") or {}
    return service.get("api_providers")


def _group_by_provider(orders: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for order in orders:
        provider = _order_provider(order)
        if not provider or not order.get("external_order_id"):
            continue
        grouped[provider["id"]].append(order)
    return grouped


def build_status_update(entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    label = entry.get("status") if isinstance(entry, dict) else None
    if not label:
        return None
    new_status = map_status(str(label))
    fields: Dict[str, Any] = {"status": new_status}
    start_count = parse_int(entry.get("start_count"))
    if start_count is not None:
        fields["start_count"] = start_count
    remains = parse_int(entry.get("remains"))
    if remains is not None:
        fields["remains"] = remains
    if new_status == "completed":
        fields["completed_at"] = datetime.now(timezone.utc).isoformat()
    return fields


async def _check_provider_orders(orders: List[Dict[str, Any]], results: Dict[str, int]) -> None:
    provider = _order_provider(orders[0])
    try:
        client = create_provider_client(provider)
        response = await client.get_order_status(
            [str(order["external_order_id"]) for order in orders]
        )
    except Exception as exc:
        logger.warning("Error checking provider %s: %s", provider.get("name"), exc)
        results["errors"] += len(orders)
        return

    if not isinstance(response, dict):
        return
    for order in orders:
        results["checked"] += 1
        entry = response.get(str(order["external_order_id"])) or response
        fields = build_status_update(entry)
        if fields is None:
            continue
        try:
            await asyncio.to_thread(update_order, order["id"], fields)
        except Exception as exc:
            logger.warning("Failed to update order %s: %s", order["id"], exc)
            results["errors"] += 1
        else:
            results["updated"] += 1


async def check_orders(orders: List[Dict[str, Any]]) -> Dict[str, int]:
    results = {"checked": 0, "updated": 0, "errors": 0}
    logger.info("Checking status for %s orders", len(orders))
    for provider_orders in _group_by_provider(orders).values():
        await _check_provider_orders(provider_orders, results)
    logger.info("Status check complete: %s", results)
    return results


async def check_all_open_orders() -> Dict[str, int]:
    orders = await asyncio.to_thread(fetch_open_orders, CHECK_ALL_LIMIT)
    return await check_orders(orders)


async def check_order_status(
    user_id: str,
    order_id: Optional[str] = None,
    check_all: bool = False,
) -> CheckStatusResponse:
    if check_all:
        if not await user_is_admin(user_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
            )
        results = await check_all_open_orders()
    elif order_id:
        order = await asyncio.to_thread(fetch_order_with_provider, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Order not found"
            )
        await ensure_owner_or_admin(user_id, order.get("user_id"))
        results = await check_orders([order])
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Order ID or checkAll flag is required",
        )
    return CheckStatusResponse(
        **results,
        message=f"Checked {results['checked']} orders and updated {results['updated']}",
    )
