# backend/utils/mailer.py
import logging
import smtplib
from email.message import EmailMessage

from config import settings

logger = logging.getLogger(__name__)

class MailError(Exception):
    pass

def send_mail(to: str, subject: str, html: str) -> bool:
    """Send an HTML e-mail. Returns False when SMTP is not configured."""
    if not settings.SMTP_HOST:
        logger.warning("SMTP is not configured, e-mail '%s' to %s not sent", subject, to)
        return False

    msg = EmailMessage()
    msg["From"] = settings.SMTP_USER or "no-reply@localhost"
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as smtp:
            smtp.starttls()
            if settings.SMTP_USER:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASS or "")
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Sending e-mail to %s failed: %s", to, e)
        raise MailError(str(e)) from e
    return True

def send_password_reset(to: str, token: str) -> bool:
    reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}"
    return send_mail(
        to,
        "Password Reset Request",
        f'Click <a href="{reset_url}">here</a> to reset your password.',
    )
