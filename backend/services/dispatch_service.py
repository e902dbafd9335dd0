import asyncio
import logging
from typing import Any, Dict

from fastapi import HTTPException, status

from auth import ensure_owner_or_admin
from repositories.orders_repository import fetch_order, update_order
from repositories.services_repository import fetch_service_with_provider
from schemas import PlaceOrderResponse
from services.providers_service import create_provider_client
from smm_api import ProviderError, extract_order_id, normalize_comments

logger = logging.getLogger("smm-panel")

SUCCESS_MESSAGE = "Order sent to provider successfully"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _resolve_provider(service: Dict[str, Any]) -> Dict[str, Any]:
    if not service.get("provider_id") or not service.get("external_service_id"):
        raise _bad_request("Service is not linked to a provider")
    provider = service.get("api_providers")
    if not provider or not provider.get("is_active"):
        raise _bad_request("Provider not found or inactive")
    return provider


def _order_comments(service: Dict[str, Any], order: Dict[str, Any]) -> str | None:
    if service.get("requires_comments") and order.get("comments"):
        return normalize_comments(order["comments"])
    return None


async def _mark_failed(order_id: str, message: str) -> None:
    await asyncio.to_thread(
        update_order,
        order_id,
        {"status": "failed", "error_message": message},
    )


async def _mark_processing(order_id: str, provider_id: str, external_order_id: str) -> None:
    try:
        await asyncio.to_thread(
            update_order,
            order_id,
            {
                "external_order_id": external_order_id,
                "provider_id": provider_id,
                "status": "processing",
                "error_message": None,
            },
        )
    except Exception as exc:
        # the provider already accepted the order; nothing is rolled back
        logger.error(
            "Order %s accepted by provider as %s but local update failed: %s",
            order_id,
            external_order_id,
            exc,
        )


async def dispatch_order(user_id: str, order_id: str) -> PlaceOrderResponse:
    order = await asyncio.to_thread(fetch_order, order_id)
    if not order:
        raise _bad_request("Order not found")
    await ensure_owner_or_admin(user_id, order.get("user_id"))

    service = await asyncio.to_thread(fetch_service_with_provider, order.get("service_id"))
    if not service:
        raise _bad_request("Service not found")
    provider = _resolve_provider(service)

    logger.info("Placing order %s via provider %s", order_id, provider.get("name"))
    client = create_provider_client(provider)
    comments = _order_comments(service, order)

    try:
        response = await client.place_order(
            service["external_service_id"],
            order.get("link"),
            order.get("quantity"),
            comments=comments,
        )
    except ProviderError as exc:
        logger.warning("Provider rejected order %s: %s", order_id, exc.message)
        await _mark_failed(order_id, exc.message)
        raise _bad_request(exc.message) from exc

    logger.info("Provider response for order %s: %s", order_id, response)
    external_order_id = extract_order_id(response)
    await _mark_processing(order_id, provider["id"], external_order_id)
    return PlaceOrderResponse(externalOrderId=external_order_id, message=SUCCESS_MESSAGE)
