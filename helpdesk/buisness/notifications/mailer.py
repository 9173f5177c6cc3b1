"""
Outgoing email over SMTP.

Configuration lives in the Flask config (SMTP_* keys loaded from the
environment). When SMTP_HOST is not set, get_smtp_config() returns None and
callers skip email delivery.
"""

import re
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Iterable, Optional, Union

from flask import current_app

from helpdesk.logger import get_logger
from helpdesk.utils.logging_sanitizer import sanitize_exception_message

logger = get_logger("helpdesk.notifications.mailer")


class MailDeliveryError(Exception):
    """Raised when the SMTP server refuses or cannot be reached"""
    pass


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    user: Optional[str]
    password: Optional[str]
    sender: str
    encryption: str = 'starttls'


def get_smtp_config() -> Optional[SmtpConfig]:
    config = current_app.config
    host = config.get('SMTP_HOST')
    if not host:
        return None

    encryption = (config.get('SMTP_ENCRYPTION') or 'starttls').lower()
    default_port = 465 if encryption == 'ssl' else 587
    return SmtpConfig(
        host=host,
        port=int(config.get('SMTP_PORT') or default_port),
        user=config.get('SMTP_USER'),
        password=config.get('SMTP_PASSWORD'),
        sender=config.get('SMTP_FROM') or config.get('SMTP_USER') or 'no-reply@helpdesk.local',
        encryption=encryption,
    )


def html_to_text(html: str) -> str:
    text = re.sub(r'<(br|/p|/div|/tr|/h\d)[^>]*>', '\n', html, flags=re.IGNORECASE)
    text = re.sub(r'<[^>]+>', '', text)
    text = re.sub(r'[ \t]+', ' ', text)
    return re.sub(r'\n\s*\n+', '\n\n', text).strip()


def send_mail(to: Union[str, Iterable[str]], subject: str, html: str, text: Optional[str] = None) -> None:
    """
    Send one HTML email with a plain-text alternative.

    Raises:
        MailDeliveryError: SMTP is not configured or delivery failed
    """
    config = get_smtp_config()
    if config is None:
        raise MailDeliveryError("SMTP is not configured")

    recipients = [to] if isinstance(to, str) else [r for r in to if r]
    if not recipients:
        raise MailDeliveryError("No recipients")

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = config.sender
    message["To"] = ", ".join(recipients)
    message.set_content(text or html_to_text(html))
    message.add_alternative(html, subtype="html")

    try:
        if config.encryption == "ssl":
            server = smtplib.SMTP_SSL(config.host, config.port, timeout=10)
        else:
            server = smtplib.SMTP(config.host, config.port, timeout=10)
        with server:
            if config.encryption == "starttls":
                server.starttls()
            if config.user and config.password:
                server.login(config.user, config.password)
            server.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        reason = sanitize_exception_message(e)
        logger.error(f"Email delivery to {recipients} failed: {reason}")
        raise MailDeliveryError(reason) from e

    logger.info(f"Email sent to {recipients}: {subject}")
