from fastapi import APIRouter, Depends

from auth import get_admin_user_id, get_current_user_id
from schemas import (
    CheckStatusRequest,
    CheckStatusResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    StatusWorkerResponse,
)
from services.dispatch_service import dispatch_order
from services.order_status_service import check_order_status
from services.status_worker import order_status_worker

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("/place", response_model=PlaceOrderResponse)
async def place_order(
    payload: PlaceOrderRequest,
    user_id: str = Depends(get_current_user_id),
) -> PlaceOrderResponse:
    return await dispatch_order(user_id, payload.orderId)


@router.post("/check-status", response_model=CheckStatusResponse)
async def check_status(
    payload: CheckStatusRequest,
    user_id: str = Depends(get_current_user_id),
) -> CheckStatusResponse:
    return await check_order_status(user_id, payload.orderId, payload.checkAll)


@router.get("/status-worker", response_model=StatusWorkerResponse)
async def read_status_worker(
    user_id: str = Depends(get_admin_user_id),
) -> StatusWorkerResponse:
    return StatusWorkerResponse(**order_status_worker.get_status())
