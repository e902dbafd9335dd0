import asyncio
import logging
import re
from typing import Optional

from fastapi import HTTPException, status

from repositories.codes_repository import (
    PASSWORD_RESET_TABLE,
    delete_unused,
    fetch_active_by_hash,
    insert_code,
    update_code,
)
from repositories.users_repository import find_user_by_email, update_password
from schemas import MessageResponse, PasswordResetVerifyResponse
from security import generate_code, generate_reset_token, hash_code
from services import mailer
from services.verification_service import (
    CODE_TTL_MINUTES,
    check_code,
    code_expiry,
    enforce_rate_limit,
    load_active_code,
    utcnow,
)

logger = logging.getLogger("smm-panel")

MAX_REQUESTS_PER_WINDOW = 3
CODE_LENGTH = 6
RESET_TOKEN_TTL_MINUTES = 5
MIN_PASSWORD_LENGTH = 8
GENERIC_REQUEST_MESSAGE = "If the email is registered, a verification code will be sent"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def validate_password(password: str) -> Optional[str]:
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if not re.search(r"[a-zA-Z]", password):
        return "Password must contain letters"
    if not re.search(r"[0-9]", password):
        return "Password must contain digits"
    return None


async def request_reset(
    email: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> MessageResponse:
    generic = MessageResponse(message=GENERIC_REQUEST_MESSAGE)
    if not email or "@" not in email:
        return generic

    email = email.lower()
    try:
        user = await asyncio.to_thread(find_user_by_email, email)
    except Exception as exc:
        logger.warning("Error fetching users: %s", exc)
        return generic
    if not user:
        logger.info("Password reset requested for unknown email: %s", email)
        return generic

    await enforce_rate_limit(
        PASSWORD_RESET_TABLE,
        "email",
        email,
        MAX_REQUESTS_PER_WINDOW,
        "Too many reset requests. Please try again later.",
    )

    code = generate_code()
    await asyncio.to_thread(delete_unused, PASSWORD_RESET_TABLE, "email", email)
    await asyncio.to_thread(
        insert_code,
        PASSWORD_RESET_TABLE,
        {
            "user_id": user["id"],
            "email": email,
            "code_hash": hash_code(code),
            "expires_at": code_expiry().isoformat(),
            "ip_address": ip_address,
            "user_agent": user_agent,
        },
    )
    try:
        await mailer.send_email(
            [email],
            "Your password reset code",
            mailer.code_email("Password reset code", code, CODE_TTL_MINUTES),
        )
    except Exception as exc:
        # the response never reveals whether the email exists
        logger.warning("Error sending password reset email to %s: %s", email, exc)
    else:
        logger.info("Password reset email sent to: %s", email)
    return generic


async def verify_reset(email: str, code: str) -> PasswordResetVerifyResponse:
    if len(code) != CODE_LENGTH:
        raise _bad_request("Invalid request data")
    email = email.lower()
    record = await load_active_code(
        PASSWORD_RESET_TABLE, "email", email, "The code is invalid or has expired"
    )
    await check_code(PASSWORD_RESET_TABLE, record, code)

    reset_token = generate_reset_token()
    await asyncio.to_thread(
        update_code,
        PASSWORD_RESET_TABLE,
        record["id"],
        code_hash=hash_code(reset_token),
        expires_at=code_expiry(RESET_TOKEN_TTL_MINUTES).isoformat(),
    )
    return PasswordResetVerifyResponse(
        reset_token=reset_token,
        user_id=record["user_id"],
        message="Verified successfully",
    )


async def complete_reset(email: str, reset_token: str, new_password: str) -> MessageResponse:
    password_error = validate_password(new_password)
    if password_error:
        raise _bad_request(password_error)

    email = email.lower()
    record = await asyncio.to_thread(
        fetch_active_by_hash, PASSWORD_RESET_TABLE, email, hash_code(reset_token), utcnow()
    )
    if not record:
        raise _bad_request("Session expired. Please request a new code.")

    try:
        await asyncio.to_thread(update_password, record["user_id"], new_password)
    except Exception as exc:
        logger.exception("Error updating password for user %s", record["user_id"])
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update password. Please try again later.",
        ) from exc

    await asyncio.to_thread(update_code, PASSWORD_RESET_TABLE, record["id"], used=True)

    try:
        await mailer.send_email(
            [email], "Your password was changed", mailer.password_changed_email()
        )
    except Exception as exc:
        logger.warning("Error sending confirmation email to %s: %s", email, exc)
    return MessageResponse(message="Password changed successfully")
