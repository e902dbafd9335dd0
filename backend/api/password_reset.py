from fastapi import APIRouter

from schemas import (
    MessageResponse,
    PasswordResetCompleteRequest,
    PasswordResetRequest,
    PasswordResetVerifyRequest,
    PasswordResetVerifyResponse,
)
from services import password_reset_service

router = APIRouter(prefix="/api/password-reset", tags=["password-reset"])


@router.post("/request", response_model=MessageResponse)
async def request_reset(payload: PasswordResetRequest) -> MessageResponse:
    return await password_reset_service.request_reset(
        payload.email, payload.ip_address, payload.user_agent
    )


@router.post("/verify", response_model=PasswordResetVerifyResponse)
async def verify_reset(payload: PasswordResetVerifyRequest) -> PasswordResetVerifyResponse:
    return await password_reset_service.verify_reset(payload.email, payload.code)


@router.post("/complete", response_model=MessageResponse)
async def complete_reset(payload: PasswordResetCompleteRequest) -> MessageResponse:
    return await password_reset_service.complete_reset(
        payload.email, payload.reset_token, payload.new_password
    )
