"""Attempt-limited verification of hashed one-time codes.

Records live in ``two_factor_codes`` and ``password_resets`` and share one
shape: ``code_hash``, ``attempts``, ``used`` and ``expires_at``. A record is
either unused or used; once ``MAX_ATTEMPTS`` wrong codes were submitted the
next attempt marks it used regardless of the code.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from fastapi import HTTPException, status

from repositories.codes_repository import count_recent, fetch_active_code, update_code
from security import codes_match

MAX_ATTEMPTS = 5
CODE_TTL_MINUTES = 10
RATE_WINDOW = timedelta(minutes=15)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def load_active_code(
    table: str, subject_field: str, subject: str, missing_detail: str
) -> Dict[str, Any]:
    record = await asyncio.to_thread(
        fetch_active_code, table, subject_field, subject, utcnow()
    )
    if not record:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=missing_detail)
    return record


async def check_code(table: str, record: Dict[str, Any], code: str) -> None:
    attempts = int(record.get("attempts") or 0)
    if attempts >= MAX_ATTEMPTS:
        await asyncio.to_thread(update_code, table, record["id"], used=True)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Maximum verification attempts exceeded. Please request a new code.",
        )

    if not codes_match(code, record.get("code_hash") or ""):
        attempts += 1
        await asyncio.to_thread(update_code, table, record["id"], attempts=attempts)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid verification code. Remaining attempts: {MAX_ATTEMPTS - attempts}",
        )


async def enforce_rate_limit(
    table: str, subject_field: str, subject: str, limit: int, detail: str
) -> None:
    since = utcnow() - RATE_WINDOW
    recent = await asyncio.to_thread(count_recent, table, subject_field, subject, since)
    if recent >= limit:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=detail)


def code_expiry(minutes: int = CODE_TTL_MINUTES) -> datetime:
    return utcnow() + timedelta(minutes=minutes)
