"""
Quote notification email.

Sends one plain-text email per accepted submission to the fixed MAIL_TO
address through fastapi-mail (SMTP).  A single attempt is made, bounded by
MAIL_TIMEOUT_SECONDS; failures surface as TransportFailure subclasses and are
never retried here.

Environment variables
---------------------
MAIL_USER / MAIL_APP_PASS   SMTP credentials (Gmail app password by default)
MAIL_FROM / MAIL_TO         Sender and destination; both default to MAIL_USER
MAIL_SERVER / MAIL_PORT     Default smtp.gmail.com:465 (implicit TLS)
MAIL_TIMEOUT_SECONDS        Upper bound on one send, default 15
"""

import asyncio
import logging
from datetime import datetime, timezone
from email.utils import make_msgid
from typing import List, Optional

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from pydantic import ValidationError

from app.config import MailSettings, get_mail_settings
from app.errors import MailConfigurationError, MailDeliveryError
from app.models.quote import EmailReceipt, SanitizedSubmission
from app.services.validators import format_phone_us, is_valid_email

logger = logging.getLogger(__name__)


def build_subject(submission: SanitizedSubmission) -> str:
    return f"New Quote Request — {submission.pharmacy_name or 'Unknown Pharmacy'}"


def build_body(submission: SanitizedSubmission) -> str:
    """Plain-text email body listing every submitted field."""
    location = ", ".join(part for part in (submission.city, submission.state) if part)
    lines: List[str] = [
        f"Pharmacy: {submission.pharmacy_name}",
        f"Contact: {submission.contact_person}",
        f"Email:   {submission.email}",
        f"Phone:   {format_phone_us(submission.phone) or submission.phone}",
        f"Address: {submission.address}",
        f"City/State: {location}",
        f"Weekly Deliveries: {submission.weekly_scripts.display}",
        "",
        "Message:",
        submission.message or "(none)",
    ]
    return "\n".join(lines)


def _connection_config(settings: MailSettings) -> ConnectionConfig:
    try:
        return ConnectionConfig(
            MAIL_USERNAME=settings.username,
            MAIL_PASSWORD=settings.password,
            MAIL_FROM=settings.mail_from,
            MAIL_PORT=settings.port,
            MAIL_SERVER=settings.server,
            MAIL_STARTTLS=settings.starttls,
            MAIL_SSL_TLS=settings.ssl_tls,
            USE_CREDENTIALS=True,
        )
    except ValidationError as exc:
        raise MailConfigurationError("Invalid mail configuration") from exc


async def send_quote_email(
    submission: SanitizedSubmission,
    settings: Optional[MailSettings] = None,
) -> EmailReceipt:
    """
    Email a sanitized quote submission to the configured destination.

    Raises:
        MailConfigurationError: credentials or MAIL_TO are missing/invalid.
        MailDeliveryError: the SMTP send failed or timed out.
    """
    settings = settings or get_mail_settings()
    if not settings.is_configured:
        raise MailConfigurationError("Missing MAIL_USER, MAIL_APP_PASS or MAIL_TO")

    conf = _connection_config(settings)
    domain = settings.mail_from.split("@")[-1] if settings.mail_from else None
    message_id = make_msgid(domain=domain)

    # Replies go to the submitter only when the address is one SMTP will take
    reply_to = [submission.email] if is_valid_email(submission.email) else []
    try:
        message = MessageSchema(
            subject=build_subject(submission),
            recipients=[settings.mail_to],
            body=build_body(submission),
            subtype=MessageType.plain,
            reply_to=reply_to,
            headers={"Message-ID": message_id},
        )
    except ValidationError as exc:
        logger.error("Quote email could not be built: %s", exc)
        raise MailConfigurationError("Invalid quote email recipient") from exc

    try:
        await asyncio.wait_for(
            FastMail(conf).send_message(message),
            timeout=settings.timeout_seconds,
        )
    except asyncio.TimeoutError as exc:
        logger.error("Quote email timed out after %ss", settings.timeout_seconds)
        raise MailDeliveryError("Timed out sending quote email") from exc
    except Exception as exc:
        logger.error("Quote email failed: %s", exc)
        raise MailDeliveryError("Failed to send quote email") from exc

    timestamp = datetime.now(timezone.utc).isoformat()
    logger.info("Quote email sent: message_id=%s", message_id)
    return EmailReceipt(message_id=message_id, timestamp=timestamp)
