from fastapi import APIRouter, Depends, HTTPException, Request, status

from auth import get_current_user_id
from config import settings
from schemas import MessageResponse, PaymentCreateRequest, PaymentCreateResponse
from services import payments_service

router = APIRouter(prefix="/api/payments", tags=["payments"])

WEBHOOK_PATH = "/api/payments/cryptomus/webhook"


def _callback_url(request: Request) -> str:
    if settings.public_api_url:
        return f"{settings.public_api_url.rstrip('/')}{WEBHOOK_PATH}"
    return str(request.url_for("cryptomus_webhook"))


@router.post("/cryptomus/create", response_model=PaymentCreateResponse)
async def create_cryptomus_payment(
    payload: PaymentCreateRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
) -> PaymentCreateResponse:
    return await payments_service.create_cryptomus_payment(
        user_id,
        payload.amount,
        payload.currency,
        _callback_url(request),
        origin=request.headers.get("origin"),
    )


@router.post("/cryptomus/webhook", response_model=MessageResponse, name="cryptomus_webhook")
async def cryptomus_webhook(request: Request) -> MessageResponse:
    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")
    return await payments_service.handle_cryptomus_webhook(payload, request.headers.get("sign"))
