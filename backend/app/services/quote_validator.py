"""
Quote form payload validation.

Composes the field validators, volume normaliser and honeypot classifier into
one pass over the raw JSON body.  All errors are collected (no short-circuit)
so the client can fix the whole form in one round trip.
"""

import logging
import re
from typing import Any, Dict, List, Mapping

from app.models.quote import NOT_SPECIFIED, SanitizedSubmission, ValidationResult, VolumeSelection
from app.services.spam import HONEYPOT_AUTOFILL, HONEYPOT_SPAM, classify_honeypot
from app.services.validators import is_valid_email, is_valid_phone_us, sanitize_text
from app.services.volume import is_valid_volume, normalize_volume

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
MAX_CITY_LENGTH = 100

ERR_PHARMACY_NAME = "Pharmacy name is required"
ERR_CONTACT_PERSON = "Contact person is required"
ERR_PHONE = "Valid US phone number is required"
ERR_EMAIL = "Valid email address is required"
ERR_MESSAGE_LENGTH = f"Message must be {MAX_MESSAGE_LENGTH} characters or less"
ERR_VOLUME = "Please select a valid weekly delivery volume"
ERR_SPAM = "Spam detection triggered"

_CITY_DISALLOWED_RE = re.compile(r"[^a-zA-Z0-9\s\-.,']")
_STATE_RE = re.compile(r"^([A-Za-z]{1,2})")


def _str_field(payload: Mapping[str, Any], key: str) -> str:
    """Return payload[key] if it is a string, else ""."""
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def sanitize_city(value: str) -> str:
    """Trim, cap at 100 chars, keep letters/digits/spaces and -.,' only."""
    if not value:
        return ""
    return _CITY_DISALLOWED_RE.sub("", value.strip()[:MAX_CITY_LENGTH])


def sanitize_state(value: str) -> str:
    """Keep the leading one or two letters, upper-cased ("mi " -> "MI")."""
    if not value:
        return ""
    match = _STATE_RE.match(value.strip())
    return match.group(1).upper() if match else ""


def _volume_fields(payload: Mapping[str, Any]) -> tuple:
    """
    Pick the volume token/display pair, preferring the current weekly
    fields over the legacy monthly ones.
    """
    token = payload.get("weekly_scripts")
    display = payload.get("weekly_scripts_display")
    if not _present(token) and not _present(display):
        token = payload.get("monthly_scripts")
        display = payload.get("monthly_scripts_display")
    return token, display


def _sanitize_volume(selection: VolumeSelection) -> VolumeSelection:
    token = sanitize_text(selection.token) or None
    display = sanitize_text(selection.display) or NOT_SPECIFIED
    return VolumeSelection(token=token, display=display)


def validate_quote_payload(payload: Mapping[str, Any]) -> ValidationResult:
    """
    Validate and sanitize a raw quote submission.

    Args:
        payload: The JSON body as received.  Keys may be missing and values
            may be of any type.

    Returns:
        ValidationResult whose ``sanitized`` record is populated whether or
        not the submission is valid.
    """
    if not isinstance(payload, Mapping):
        payload = {}

    errors: List[str] = []

    pharmacy_name = sanitize_text(payload.get("pharmacy_name"))
    contact_person = sanitize_text(payload.get("contact_person"))
    phone = _str_field(payload, "phone")
    email = _str_field(payload, "email").strip()
    message = _str_field(payload, "message")
    honeypot = _str_field(payload, "company_website")

    # Required fields
    if not pharmacy_name:
        errors.append(ERR_PHARMACY_NAME)
    if not contact_person:
        errors.append(ERR_CONTACT_PERSON)
    if not is_valid_phone_us(phone):
        errors.append(ERR_PHONE)
    if not is_valid_email(email):
        errors.append(ERR_EMAIL)

    # Optional fields, flagged only when present and malformed
    if len(message) > MAX_MESSAGE_LENGTH:
        errors.append(ERR_MESSAGE_LENGTH)

    volume_token, volume_display = _volume_fields(payload)
    volume = normalize_volume(volume_token, volume_display)
    logger.debug(
        "Volume normalization: token=%r display=%r -> %r",
        volume_token,
        volume_display,
        volume,
    )
    # A supplied display label is trusted; only a bare token is checked
    if _present(volume_token) and not _present(volume_display) and not is_valid_volume(volume_token):
        errors.append(ERR_VOLUME)

    honeypot_kind = classify_honeypot(honeypot)
    if honeypot_kind == HONEYPOT_SPAM:
        logger.warning("Honeypot triggered - likely spam (length=%d)", len(honeypot.strip()))
        errors.append(ERR_SPAM)
    elif honeypot_kind == HONEYPOT_AUTOFILL:
        logger.debug("Honeypot filled but looks like autofill, allowing: %r", honeypot)

    sanitized = SanitizedSubmission(
        pharmacy_name=pharmacy_name,
        contact_person=contact_person,
        phone=sanitize_text(phone),
        email=sanitize_text(email),
        address=sanitize_text(payload.get("address")),
        city=sanitize_city(_str_field(payload, "city")),
        state=sanitize_state(_str_field(payload, "state")),
        weekly_scripts=_sanitize_volume(volume),
        message=sanitize_text(message),
        company_website=sanitize_text(honeypot),
    )

    return ValidationResult(valid=not errors, errors=errors, sanitized=sanitized)


def payload_summary(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Non-sensitive shape of a raw payload, for debug logging."""
    return {
        "fields": sorted(payload.keys()),
        "has_message": bool(payload.get("message")),
        "honeypot_filled": bool(_str_field(payload, "company_website").strip()),
    }
