from typing import Union

from fastapi import APIRouter, Depends, HTTPException, status

from auth import get_admin_user_id
from schemas import (
    CatalogImportResponse,
    CatalogListResponse,
    CatalogRequest,
    CatalogServiceResponse,
)
from services import catalog_service

router = APIRouter(prefix="/api/catalog", tags=["catalog"])

CatalogResponse = Union[CatalogListResponse, CatalogServiceResponse, CatalogImportResponse]


@router.post("/import", response_model=CatalogResponse)
async def import_catalog(
    payload: CatalogRequest,
    user_id: str = Depends(get_admin_user_id),
) -> CatalogResponse:
    if payload.action == "fetch":
        return await catalog_service.fetch_services(payload.providerId)
    if payload.action == "fetch_single":
        return await catalog_service.fetch_single_service(payload.providerId, payload.serviceId)
    if payload.action == "import":
        return await catalog_service.import_services(
            payload.providerId,
            category_id=payload.categoryId,
            price_multiplier=payload.priceMultiplier,
            selected=payload.selectedServices,
        )
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported action")
