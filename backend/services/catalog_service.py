import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from repositories.providers_repository import fetch_provider
from repositories.services_repository import (
    find_imported_service,
    insert_service,
    update_service,
)
from schemas import (
    CatalogImportResponse,
    CatalogListResponse,
    CatalogServiceResponse,
    ProviderService,
)
from services.providers_service import create_provider_client
from smm_api import ProviderError, format_service

logger = logging.getLogger("smm-panel")


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def service_slug(provider_name: str, external_id: str) -> str:
    prefix = re.sub(r"\s+", "-", provider_name.lower())
    return f"{prefix}-{external_id}"


async def _load_provider(provider_id: str) -> Dict[str, Any]:
    provider = await asyncio.to_thread(fetch_provider, provider_id)
    if not provider:
        raise _bad_request("Provider not found")
    return provider


async def _provider_services(provider: Dict[str, Any]) -> List[Dict[str, Any]]:
    client = create_provider_client(provider)
    try:
        return await client.list_services()
    except ProviderError as exc:
        raise _bad_request(exc.message) from exc


async def fetch_services(provider_id: str) -> CatalogListResponse:
    provider = await _load_provider(provider_id)
    logger.info("Fetching services list from provider: %s", provider.get("name"))
    raw_services = await _provider_services(provider)
    services = [ProviderService(**format_service(raw)) for raw in raw_services]
    return CatalogListResponse(services=services, total=len(services))


async def fetch_single_service(provider_id: str, service_id: Optional[str]) -> CatalogServiceResponse:
    if not service_id:
        raise _bad_request("Service ID is required for fetch_single action")
    provider = await _load_provider(provider_id)
    raw_services = await _provider_services(provider)
    for raw in raw_services:
        formatted = format_service(raw)
        if formatted["id"] == str(service_id):
            return CatalogServiceResponse(service=ProviderService(**formatted))
    raise _bad_request(f"Service with ID {service_id} not found")


def _upsert_service(
    provider: Dict[str, Any],
    raw: Dict[str, Any],
    *,
    category_id: Optional[str],
    price_multiplier: float,
) -> bool:
    """Returns True when a new catalog row was inserted, False on update."""
    formatted = format_service(raw)
    external_id = formatted["id"]
    fields = {
        "name": formatted["name"],
        "description": formatted["description"],
        "price": formatted["rate"] * price_multiplier,
        "min_quantity": formatted["min"],
        "max_quantity": formatted["max"],
        "delivery_time": formatted["speed"],
        "is_active": True,
    }
    existing = find_imported_service(external_id, provider["id"])
    if existing:
        update_service(existing["id"], fields)
        return False
    insert_service(
        {
            **fields,
            "slug": service_slug(provider.get("name") or "", external_id),
            "provider_id": provider["id"],
            "external_service_id": external_id,
            "category_id": category_id or None,
            "is_archived": False,
        }
    )
    return True


async def import_services(
    provider_id: str,
    *,
    category_id: Optional[str] = None,
    price_multiplier: float = 1.0,
    selected: Optional[List[Dict[str, Any]]] = None,
) -> CatalogImportResponse:
    provider = await _load_provider(provider_id)
    logger.info("Importing services from provider: %s", provider.get("name"))
    to_import = selected or await _provider_services(provider)

    imported = updated = failed = 0
    for raw in to_import:
        try:
            inserted = await asyncio.to_thread(
                _upsert_service,
                provider,
                raw,
                category_id=category_id,
                price_multiplier=price_multiplier,
            )
        except Exception as exc:
            logger.warning("Failed to import service %s: %s", raw.get("service") or raw.get("id"), exc)
            failed += 1
            continue
        if inserted:
            imported += 1
        else:
            updated += 1

    logger.info("Import complete: %s imported, %s updated, %s failed", imported, updated, failed)
    return CatalogImportResponse(
        imported=imported,
        updated=updated,
        failed=failed,
        total=len(to_import),
        message=f"Imported {imported} new services and updated {updated}",
    )
