"""
Outbound email over SMTP. Without SMTP settings nothing is sent and the
message is logged instead.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional

from nightout.core.config import get_settings
from nightout.core.logging import get_logger

logger = get_logger(__name__)


def send_email(to: str, subject: str, text: str, *, reply_to: Optional[str] = None) -> bool:
    settings = get_settings()
    if not (settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASSWORD):
        logger.info("email_not_sent", reason="smtp_not_configured", to=to, subject=subject)
        return False

    msg = EmailMessage()
    msg["From"] = settings.FROM_EMAIL
    msg["To"] = to
    msg["Subject"] = subject
    if reply_to:
        msg["Reply-To"] = reply_to
    msg.set_content(text)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("email_sent", to=to, subject=subject)
    return True


async def send_password_reset_email(to: str, token: str) -> None:
    settings = get_settings()
    link = f"{settings.PASSWORD_RESET_URL}?token={token}"
    text = (
        "Someone asked to reset the password for your Nightout account.\n\n"
        f"Open this link within {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes to choose a new one:\n"
        f"{link}\n\n"
        "If it wasn't you, ignore this email."
    )
    try:
        await asyncio.to_thread(send_email, to, "Reset your Nightout password", text)
    except (smtplib.SMTPException, OSError) as e:
        # The reset token is already stored; the user can ask again.
        logger.error("password_reset_email_failed", to=to, error=str(e))
