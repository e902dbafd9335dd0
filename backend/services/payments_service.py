import asyncio
import json
import logging
import math
import time
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from config import settings
from cryptomus_api import (
    PAID_STATUSES,
    PAYMENT_LIFETIME_SECONDS,
    CryptomusClient,
    CryptomusCredentials,
    CryptomusError,
    verify_signature,
)
from repositories.payments_repository import (
    claim_transaction,
    fetch_profile_balance,
    fetch_transaction_by_reference,
    insert_transaction,
    release_transaction,
    update_profile_balance,
)
from schemas import MessageResponse, PaymentCreateResponse

logger = logging.getLogger("smm-panel")

PAYMENT_METHOD = "cryptomus"
RETURN_PATH = "/dashboard?tab=balance&payment=success"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _server_error(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def _gateway_credentials() -> CryptomusCredentials:
    if not settings.cryptomus_merchant_id or not settings.cryptomus_api_key:
        logger.error("Cryptomus credentials not configured")
        raise _server_error("Payment gateway not configured")
    return CryptomusCredentials(
        merchant_id=settings.cryptomus_merchant_id,
        api_key=settings.cryptomus_api_key,
    )


def create_gateway_client() -> CryptomusClient:
    return CryptomusClient(_gateway_credentials())


def _parse_amount(value: Any) -> Optional[float]:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(amount) or math.isinf(amount) or amount <= 0:
        return None
    return amount


def _amount_text(amount: float) -> str:
    return str(int(amount)) if amount.is_integer() else str(amount)


def _payload_user_id(payload: Dict[str, Any]) -> Optional[str]:
    try:
        extra = json.loads(payload.get("additional_data") or "{}")
    except (TypeError, ValueError):
        extra = {}
    user_id = extra.get("userId") if isinstance(extra, dict) else None
    if user_id:
        return str(user_id)
    # order ids are "<user id>-<epoch millis>"
    order_id = str(payload.get("order_id") or "")
    return order_id.rpartition("-")[0] or None


def _is_settled(transaction: Dict[str, Any]) -> bool:
    return float(transaction.get("balance_after") or 0) != float(transaction.get("balance_before") or 0)


async def create_cryptomus_payment(
    user_id: str,
    amount: float,
    currency: str,
    callback_url: str,
    origin: Optional[str] = None,
) -> PaymentCreateResponse:
    parsed_amount = _parse_amount(amount)
    if parsed_amount is None:
        raise _bad_request("Invalid amount")
    client = create_gateway_client()

    order_id = f"{user_id}-{int(time.time() * 1000)}"
    return_url = f"{(origin or settings.site_url).rstrip('/')}{RETURN_PATH}"
    body = {
        "amount": _amount_text(parsed_amount),
        "currency": currency,
        "order_id": order_id,
        "url_callback": callback_url,
        "url_return": return_url,
        "url_success": return_url,
        "is_payment_multiple": False,
        "lifetime": PAYMENT_LIFETIME_SECONDS,
        "additional_data": json.dumps({"userId": user_id}, separators=(",", ":")),
    }
    logger.info("Creating Cryptomus payment for user %s, amount %s", user_id, body["amount"])
    try:
        result = await client.create_payment(body)
    except CryptomusError as exc:
        logger.error("Cryptomus payment creation error: %s", exc.payload)
        raise _server_error(exc.message) from exc

    balance = await asyncio.to_thread(fetch_profile_balance, user_id) or 0.0
    try:
        await asyncio.to_thread(
            insert_transaction,
            {
                "user_id": user_id,
                "type": "deposit",
                "amount": parsed_amount,
                "balance_before": balance,
                "balance_after": balance,
                "description": f"Cryptomus deposit - Order: {order_id}",
                "payment_method": PAYMENT_METHOD,
                "payment_reference": result.get("uuid"),
            },
        )
    except Exception as exc:
        # the webhook records the deposit when no pending row exists
        logger.error("Failed to store pending transaction %s: %s", result.get("uuid"), exc)

    logger.info("Cryptomus payment created: %s", result.get("uuid"))
    return PaymentCreateResponse(
        paymentId=str(result.get("uuid") or ""),
        paymentUrl=str(result.get("url") or ""),
        orderId=order_id,
        status=result.get("status"),
    )


async def handle_cryptomus_webhook(
    payload: Dict[str, Any],
    received_sign: Optional[str] = None,
) -> MessageResponse:
    api_key = _gateway_credentials().api_key
    body = dict(payload)
    body_sign = body.pop("sign", None)
    if not verify_signature(body, str(received_sign or body_sign or ""), api_key):
        logger.error("Invalid Cryptomus signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    reference = body.get("uuid")
    payment_status = body.get("status")
    if payment_status not in PAID_STATUSES:
        logger.info("Payment %s status: %s - skipping", reference, payment_status)
        return MessageResponse(message="Status noted")
    if not reference:
        raise _bad_request("Payment reference missing")
    amount = _parse_amount(body.get("amount"))
    if amount is None:
        raise _bad_request("Invalid amount")

    transaction = await asyncio.to_thread(fetch_transaction_by_reference, reference)
    if transaction and _is_settled(transaction):
        logger.info("Payment %s already processed", reference)
        return MessageResponse(message="Already processed")

    user_id = transaction["user_id"] if transaction else _payload_user_id(body)
    if not user_id:
        logger.error("Could not determine user for payment %s", reference)
        raise _bad_request("User ID not found")

    current_balance = await asyncio.to_thread(fetch_profile_balance, user_id)
    if current_balance is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    new_balance = current_balance + amount

    if transaction:
        claimed = await asyncio.to_thread(
            claim_transaction,
            transaction["id"],
            transaction.get("balance_before"),
            balance_before=current_balance,
            balance_after=new_balance,
            description=f"Cryptomus deposit completed - {reference}",
        )
        if not claimed:
            logger.info("Payment %s already processed", reference)
            return MessageResponse(message="Already processed")
        transaction_id = transaction["id"]
    else:
        row = await asyncio.to_thread(
            insert_transaction,
            {
                "user_id": user_id,
                "type": "deposit",
                "amount": amount,
                "balance_before": current_balance,
                "balance_after": new_balance,
                "description": f"Cryptomus deposit - {reference}",
                "payment_method": PAYMENT_METHOD,
                "payment_reference": reference,
            },
        )
        transaction_id = row["id"]

    credited = await asyncio.to_thread(update_profile_balance, user_id, new_balance)
    if not credited:
        logger.error("Failed to credit payment %s to user %s", reference, user_id)
        await asyncio.to_thread(release_transaction, transaction_id, current_balance)
        raise _server_error("Failed to update balance")

    logger.info(
        "Payment %s processed: user %s balance %s -> %s",
        reference,
        user_id,
        current_balance,
        new_balance,
    )
    return MessageResponse(message="Payment processed")
