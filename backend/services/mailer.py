import logging
from datetime import datetime, timezone
from typing import List

import httpx

from config import settings

logger = logging.getLogger("smm-panel")

RESEND_URL = "https://api.resend.com/emails"


class MailNotConfigured(RuntimeError):
    pass


def _layout(title: str, body: str) -> str:
    year = datetime.now(timezone.utc).year
    return (
        "<!DOCTYPE html><html><body style=\"font-family: sans-serif; background: #f4f4f4; padding: 20px;\">"
        "<div style=\"max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 12px; padding: 32px;\">"
        f"<h2 style=\"text-align: center;\">{title}</h2>{body}"
        f"<p style=\"color: #9ca3af; font-size: 12px; text-align: center;\">&copy; {year}</p>"
        "</div></body></html>"
    )


def code_email(title: str, code: str, ttl_minutes: int) -> str:
    return _layout(
        title,
        "<div style=\"font-size: 36px; font-weight: bold; letter-spacing: 8px; text-align: center;\">"
        f"{code}</div>"
        f"<p style=\"text-align: center;\">The code is valid for {ttl_minutes} minutes.</p>"
        "<p style=\"text-align: center;\">If you did not request it, ignore this message.</p>",
    )


def password_changed_email() -> str:
    return _layout(
        "Your password was changed",
        "<p style=\"text-align: center;\">You can now sign in with your new password. "
        "If you did not make this change, contact support immediately.</p>",
    )


async def send_email(to: List[str], subject: str, html: str) -> None:
    if not settings.resend_api_key:
        raise MailNotConfigured("Email service not configured")
    payload = {"from": settings.mail_from, "to": to, "subject": subject, "html": html}
    headers = {"Authorization": f"Bearer {settings.resend_api_key}"}
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.post(RESEND_URL, json=payload, headers=headers)
    response.raise_for_status()
    logger.info("Email '%s' sent to %s", subject, ", ".join(to))
