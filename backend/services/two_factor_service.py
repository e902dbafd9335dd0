import asyncio
import logging
from typing import Optional

from fastapi import HTTPException, status

from repositories.codes_repository import TWO_FACTOR_TABLE, insert_code, update_code
from repositories.users_repository import set_two_factor_enabled
from schemas import MessageResponse, TwoFactorToggleResponse
from security import generate_code, hash_code
from services import mailer
from services.verification_service import (
    CODE_TTL_MINUTES,
    check_code,
    code_expiry,
    enforce_rate_limit,
    load_active_code,
)

logger = logging.getLogger("smm-panel")

MAX_CODES_PER_WINDOW = 5


async def send_code(
    user_id: str,
    email: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> MessageResponse:
    await enforce_rate_limit(
        TWO_FACTOR_TABLE,
        "user_id",
        user_id,
        MAX_CODES_PER_WINDOW,
        "Too many verification codes requested. Please wait 15 minutes.",
    )
    code = generate_code()
    email = email.lower()
    await asyncio.to_thread(
        insert_code,
        TWO_FACTOR_TABLE,
        {
            "user_id": user_id,
            "email": email,
            "code_hash": hash_code(code),
            "expires_at": code_expiry().isoformat(),
            "ip_address": ip_address or "unknown",
            "user_agent": user_agent or "unknown",
        },
    )
    try:
        await mailer.send_email(
            [email],
            "Your two-factor verification code",
            mailer.code_email("Two-factor verification", code, CODE_TTL_MINUTES),
        )
    except mailer.MailNotConfigured as exc:
        logger.error("RESEND_API_KEY not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    logger.info("2FA code sent to %s", email)
    return MessageResponse(message="Verification code sent")


async def verify_code(user_id: str, code: str) -> MessageResponse:
    record = await load_active_code(
        TWO_FACTOR_TABLE,
        "user_id",
        user_id,
        "No valid verification code. Please request a new one.",
    )
    await check_code(TWO_FACTOR_TABLE, record, code)
    await asyncio.to_thread(update_code, TWO_FACTOR_TABLE, record["id"], used=True)
    logger.info("2FA verified for user %s", user_id)
    return MessageResponse(message="Verified successfully")


async def toggle(user_id: str, enabled: bool) -> TwoFactorToggleResponse:
    await asyncio.to_thread(set_two_factor_enabled, user_id, enabled)
    logger.info("2FA %s for user %s", "enabled" if enabled else "disabled", user_id)
    return TwoFactorToggleResponse(
        enabled=enabled,
        message="Two-factor authentication enabled" if enabled else "Two-factor authentication disabled",
    )
