"""
Weekly prescription volume normalisation.

The volume selector on the quote form has changed encoding several times
(monthly vs weekly buckets, en-dash labels, numeric tokens that lost their
dash in transit).  This module maps every encoding seen so far onto the
canonical three-bucket scheme:

    lt25     -> "Less than 25"
    25to125  -> "25 to 125"
    gt125    -> "More than 125"

Unrecognised tokens are never rejected outright: they are echoed back as
their own display label so a legitimate submission is not blocked by a
front-end/back-end version mismatch.
"""

import logging
import re
from typing import Any, Optional

from app.models.quote import NOT_SPECIFIED, VolumeSelection

logger = logging.getLogger(__name__)

CANONICAL_VOLUMES = {
    "lt25": "Less than 25",
    "25to125": "25 to 125",
    "gt125": "More than 125",
}

# Legacy encodings that the generic patterns below cannot recover
_LEGACY_TOKENS = {
    "25125": "25to125",    # "25-125" with the dash stripped by an old encoder
    "100500": "100to500",  # monthly-era "100–500"
}

_MAX_ECHO_LENGTH = 50
_SAFE_ECHO_RE = re.compile(r"[\w\s<>+\-–—.,/]+")

_RANGE_RE = re.compile(r"^(\d+)\s*(?:-|–|—|to)\s*(\d+)$")
_LESS_THAN_RE = re.compile(r"^(?:lt|<|less\s+than|under)\s*(\d+)$")
_MORE_THAN_RE = re.compile(r"^(?:gt|>|more\s+than|over)\s*(\d+)$")
_PLUS_RE = re.compile(r"^(\d+)\s*\+$")

_TOKEN_RANGE_RE = re.compile(r"^(\d+)to(\d+)$")
_TOKEN_LT_RE = re.compile(r"^lt(\d+)$")
_TOKEN_GT_RE = re.compile(r"^gt(\d+)$")


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def resolve_volume_token(value: Any) -> Optional[str]:
    """
    Map any known surface encoding to its token form, or None.

    Examples:
        "25to125"    -> "25to125"
        "25–125"     -> "25to125"
        "25 to 125"  -> "25to125"
        "<25"        -> "lt25"
        "125+"       -> "gt125"
        "25125"      -> "25to125"
        "lots"       -> None
    """
    key = _clean(value).lower()
    if not key:
        return None

    if key in CANONICAL_VOLUMES:
        return key
    if key in _LEGACY_TOKENS:
        return _LEGACY_TOKENS[key]

    match = _RANGE_RE.match(key)
    if match:
        return f"{match.group(1)}to{match.group(2)}"

    match = _LESS_THAN_RE.match(key)
    if match:
        return f"lt{match.group(1)}"

    match = _MORE_THAN_RE.match(key) or _PLUS_RE.match(key)
    if match:
        return f"gt{match.group(1)}"

    return None


def volume_display(token: str) -> Optional[str]:
    """
    Human label for a resolved token.

    Known tokens use the fixed table; other shorthand is pretty-printed:
    "30to75" -> "30 to 75", "lt10" -> "Less than 10", "gt500" -> "More than 500".
    """
    if token in CANONICAL_VOLUMES:
        return CANONICAL_VOLUMES[token]

    match = _TOKEN_RANGE_RE.match(token)
    if match:
        return f"{match.group(1)} to {match.group(2)}"
    match = _TOKEN_LT_RE.match(token)
    if match:
        return f"Less than {match.group(1)}"
    match = _TOKEN_GT_RE.match(token)
    if match:
        return f"More than {match.group(1)}"
    return None


def is_valid_volume(value: Any) -> bool:
    """
    True when a supplied token is usable: either it resolves to a known
    form, or it is short plain text that can safely be echoed as a label.
    """
    raw = _clean(value)
    if not raw:
        return False
    if resolve_volume_token(raw) is not None:
        return True
    return len(raw) <= _MAX_ECHO_LENGTH and _SAFE_ECHO_RE.fullmatch(raw) is not None


def normalize_volume(token: Any = None, display: Any = None) -> VolumeSelection:
    """
    Produce the (token, display) pair for the quote email.

    Priority:
      1. Both blank                -> (None, "Not specified")
      2. Display supplied          -> passed through with the raw token
      3. Token resolves            -> canonical token and label
      4. Anything else             -> raw token echoed as its own label
    """
    raw_token = _clean(token)
    raw_display = _clean(display)

    if not raw_token and not raw_display:
        return VolumeSelection(token=None, display=NOT_SPECIFIED)

    if raw_display:
        return VolumeSelection(token=raw_token or None, display=raw_display)

    resolved = resolve_volume_token(raw_token)
    if resolved is not None:
        label = volume_display(resolved)
        if label is not None:
            return VolumeSelection(token=resolved, display=label)

    logger.debug("normalize_volume: echoing unrecognised token %r", raw_token)
    return VolumeSelection(token=raw_token, display=raw_token)
