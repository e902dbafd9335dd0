from fastapi import APIRouter, Depends, Request

from auth import get_current_user_id
from schemas import (
    MessageResponse,
    TwoFactorSendRequest,
    TwoFactorToggleRequest,
    TwoFactorToggleResponse,
    TwoFactorVerifyRequest,
)
from services import two_factor_service

router = APIRouter(prefix="/api/two-factor", tags=["two-factor"])


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("x-real-ip") or "unknown"


@router.post("/send", response_model=MessageResponse)
async def send_code(payload: TwoFactorSendRequest, request: Request) -> MessageResponse:
    return await two_factor_service.send_code(
        payload.user_id,
        payload.email,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/verify", response_model=MessageResponse)
async def verify_code(payload: TwoFactorVerifyRequest) -> MessageResponse:
    return await two_factor_service.verify_code(payload.user_id, payload.code)


@router.post("/toggle", response_model=TwoFactorToggleResponse)
async def toggle(
    payload: TwoFactorToggleRequest,
    user_id: str = Depends(get_current_user_id),
) -> TwoFactorToggleResponse:
    return await two_factor_service.toggle(user_id, payload.enabled)
