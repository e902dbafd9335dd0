import asyncio
import logging
from typing import Any, Dict, List

from cryptography.fernet import InvalidToken
from fastapi import HTTPException, status

from repositories.providers_repository import (
    delete_provider as repo_delete_provider,
    fetch_user_providers as repo_fetch_user_providers,
    insert_provider,
)
from schemas import ProviderCreate, ProviderResponse
from security import decrypt_secret, encrypt_secret
from smm_api import ProviderCredentials, SmmProviderClient

logger = logging.getLogger("smm-panel")

UNREADABLE_KEY_PREVIEW = "unavailable"


def _preview_key(api_key: str) -> str:
    if len(api_key) <= 8:
        return api_key
    return f"{api_key[:4]}...{api_key[-4:]}"


def _stored_key_preview(row: Dict[str, Any]) -> str:
    try:
        return _preview_key(decrypt_secret(row["api_key"]))
    except InvalidToken:
        logger.warning("Provider %s has an unreadable api key", row.get("id"))
        return UNREADABLE_KEY_PREVIEW


def _format_row(row: Dict[str, Any]) -> ProviderResponse:
    return ProviderResponse(
        id=row["id"],
        name=row["name"],
        api_url=row["api_url"],
        api_key_preview=_stored_key_preview(row),
        is_active=bool(row.get("is_active")),
        balance=row.get("balance"),
        currency=row.get("currency"),
        last_sync_at=row.get("last_sync_at"),
        created_at=row.get("created_at"),
    )


def build_provider_credentials(row: Dict[str, Any]) -> ProviderCredentials:
    return ProviderCredentials(
        api_url=row["api_url"],
        api_key=decrypt_secret(row["api_key"]),
        name=row.get("name") or "",
    )


def create_provider_client(row: Dict[str, Any]) -> SmmProviderClient:
    return SmmProviderClient(build_provider_credentials(row))


async def list_providers(user_id: str) -> List[ProviderResponse]:
    rows = await asyncio.to_thread(repo_fetch_user_providers, user_id)
    return [_format_row(row) for row in rows]


async def create_provider(user_id: str, payload: ProviderCreate) -> ProviderResponse:
    record = {
        "user_id": user_id,
        "name": payload.name,
        "api_url": payload.api_url,
        "api_key": encrypt_secret(payload.api_key),
        "is_active": payload.is_active,
    }
    try:
        row = await asyncio.to_thread(insert_provider, record)
    except RuntimeError as exc:  # pragma: no cover - network/database error
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store provider",
        ) from exc
    return _format_row(row)


async def delete_provider(user_id: str, provider_id: str) -> bool:
    return await asyncio.to_thread(repo_delete_provider, user_id, provider_id)
