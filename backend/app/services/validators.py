"""
Field-level validators for the quote form.

Pure functions, no I/O.  Each accepts ``Any`` because the raw submission is
untyped JSON: a non-string value is treated the same as a missing one.
"""

import re
from typing import Any, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

MAX_EMAIL_LENGTH = 254

# Local part: common safe characters.  Domain: dot-separated labels of 1-63
# alphanumerics/hyphens that neither start nor end with a hyphen.
_EMAIL_RE = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)

# NANP: area code and exchange code may not start with 0 or 1
_US_PHONE_RE = re.compile(r"1?[2-9]\d{2}[2-9]\d{6}")

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[^;]+;")
_NON_DIGIT_RE = re.compile(r"\D")

# Same check fastapi-mail applies to recipients and reply_to (email-validator
# under the hood): dot placement, multi-label domains, no special-use TLDs
_EMAIL_STR = TypeAdapter(EmailStr)


def is_valid_email(value: Any) -> bool:
    """
    Syntactic email check.  No DNS or mailbox verification.

    Examples:
        "user@example.com"  -> True
        "not-an-email"      -> False
        "a@b"               -> False  (single-label domain)
        "john..doe@x.com"   -> False  (consecutive dots)
        "x@pharmacy.test"   -> False  (special-use TLD)
    """
    if not value or not isinstance(value, str):
        return False
    if len(value) > MAX_EMAIL_LENGTH:
        return False
    if _EMAIL_RE.fullmatch(value) is None:
        return False
    try:
        _EMAIL_STR.validate_python(value)
    except ValidationError:
        return False
    return True


def phone_digits(value: Any) -> str:
    """Return only the digits of a phone string ("" for non-strings)."""
    if not isinstance(value, str):
        return ""
    return _NON_DIGIT_RE.sub("", value)


def is_valid_phone_us(value: Any) -> bool:
    """
    Validate a US phone number in any common formatting.

    After stripping non-digits the number must be 10 digits, or 11 digits
    with a leading country code "1".  Area and exchange codes must start
    with 2-9.

    Examples:
        "(313) 333-2133"  -> True
        "+13133332133"    -> True
        "313-133-2133"    -> False  (exchange starts with 1)
    """
    digits = phone_digits(value)
    if len(digits) == 10:
        return _US_PHONE_RE.fullmatch(digits) is not None
    if len(digits) == 11 and digits.startswith("1"):
        return _US_PHONE_RE.fullmatch(digits) is not None
    return False


def format_phone_us(value: Any) -> Optional[str]:
    """Render a valid US number as "(XXX) XXX-XXXX", or None if invalid."""
    if not is_valid_phone_us(value):
        return None
    digits = phone_digits(value)[-10:]
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def sanitize_text(value: Any) -> str:
    """
    Best-effort HTML stripper: drop ``<...>`` tags and ``&...;`` entities,
    then trim whitespace.

    This is not an HTML parser.  It is only meant to keep markup out of the
    notification email and logs.
    """
    if not value or not isinstance(value, str):
        return ""
    text = _TAG_RE.sub("", value)
    text = _ENTITY_RE.sub("", text)
    return text.strip()
