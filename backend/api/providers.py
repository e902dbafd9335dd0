from fastapi import APIRouter, Depends, HTTPException, Response, status

from auth import get_current_user_id
from schemas import (
    ProviderCreate,
    ProviderListResponse,
    ProviderResponse,
    SyncBalanceRequest,
    SyncBalanceResponse,
)
from services import providers_service
from services.balance_service import sync_provider_balance

router = APIRouter(prefix="/api/providers", tags=["providers"])


@router.get("", response_model=ProviderListResponse)
async def list_providers(
    user_id: str = Depends(get_current_user_id),
) -> ProviderListResponse:
    items = await providers_service.list_providers(user_id)
    return ProviderListResponse(items=items)


@router.post("", response_model=ProviderResponse, status_code=status.HTTP_201_CREATED)
async def create_provider(
    payload: ProviderCreate,
    user_id: str = Depends(get_current_user_id),
) -> ProviderResponse:
    return await providers_service.create_provider(user_id, payload)


@router.delete("/{provider_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_provider(
    provider_id: str,
    user_id: str = Depends(get_current_user_id),
) -> Response:
    deleted = await providers_service.delete_provider(user_id, provider_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sync-balance", response_model=SyncBalanceResponse)
async def sync_balance(
    payload: SyncBalanceRequest,
    user_id: str = Depends(get_current_user_id),
) -> SyncBalanceResponse:
    return await sync_provider_balance(user_id, payload.providerId)
