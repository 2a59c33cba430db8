import logging
from email.message import EmailMessage
from html import escape
from typing import Optional

import aiosmtplib
from app.core.config import settings
from app.core.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


def verification_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/auth/verify-email?token={token}"


def password_reset_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/auth/reset-password?token={token}"


def _greeting(name: Optional[str]) -> str:
    return f"Hi {name}," if name else "Hi,"


async def send_email(to_email: str, subject: str, body: str, html: Optional[str] = None):
    message = EmailMessage()
    message["From"] = settings.MAIL_FROM
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(body)
    if html:
        message.add_alternative(html, subtype="html")

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            start_tls=True,
            username=settings.MAIL_FROM,
            password=settings.MAIL_PASSWORD,
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error("Email '%s' to %s failed: %s", subject, to_email, e)
        raise EmailDeliveryError("Failed to send email")

    logger.info("Email '%s' sent to %s", subject, to_email)


async def send_verification_email(to_email: str, token: str, name: Optional[str] = None):
    url = verification_url(token)
    body = (
        f"{_greeting(name)}\n\n"
        f"Confirm your email address to finish setting up your account:\n{url}\n\n"
        f"This link expires in {settings.EMAIL_VERIFICATION_EXPIRE_HOURS} hours."
    )
    # name is user supplied
    html = (
        f"<p>{escape(_greeting(name))}</p>"
        f"<p>Confirm your email address to finish setting up your account.</p>"
        f'<p><a href="{escape(url, quote=True)}">Verify email</a></p>'
        f"<p>This link expires in {settings.EMAIL_VERIFICATION_EXPIRE_HOURS} hours.</p>"
    )
    await send_email(to_email, "Verify your email address", body, html)


async def send_password_reset_email(to_email: str, token: str, name: Optional[str] = None):
    url = password_reset_url(token)
    body = (
        f"{_greeting(name)}\n\n"
        f"Someone asked to reset the password for this account. Use this link to choose a new one:\n{url}\n\n"
        f"The link expires in {settings.PASSWORD_RESET_EXPIRE_HOURS} hour(s). "
        f"If you did not ask for this, ignore this email."
    )
    html = (
        f"<p>{escape(_greeting(name))}</p>"
        f"<p>Someone asked to reset the password for this account.</p>"
        f'<p><a href="{escape(url, quote=True)}">Reset password</a></p>'
        f"<p>The link expires in {settings.PASSWORD_RESET_EXPIRE_HOURS} hour(s). "
        f"If you did not ask for this, ignore this email.</p>"
    )
    await send_email(to_email, "Reset your password", body, html)
