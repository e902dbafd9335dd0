import asyncio
import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status

from repositories.providers_repository import fetch_provider, update_balance
from schemas import SyncBalanceResponse
from services.providers_service import create_provider_client
from smm_api import ProviderError, parse_balance

logger = logging.getLogger("smm-panel")


async def sync_provider_balance(user_id: str, provider_id: str) -> SyncBalanceResponse:
    provider = await asyncio.to_thread(fetch_provider, provider_id, user_id)
    if not provider:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Provider not found"
        )

    logger.info("Syncing balance for provider: %s", provider.get("name"))
    client = create_provider_client(provider)
    try:
        response = await client.get_balance()
    except ProviderError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message
        ) from exc

    balance, currency = parse_balance(response)
    updated = await asyncio.to_thread(
        update_balance,
        provider_id,
        user_id,
        balance=balance,
        currency=currency,
        synced_at=datetime.now(timezone.utc),
    )
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update balance",
        )
    return SyncBalanceResponse(
        balance=balance,
        currency=currency,
        message="Balance synced successfully",
    )
