"""
Anti-spam heuristics for quote submissions.

Three independent checks:
  - classify_honeypot()      hidden form field, with autofill tolerance
  - detect_spam()            content heuristics over the sanitized record
  - is_submission_too_fast() minimum dwell time between form render and submit

These are tunable policies, not a security boundary.  Callers must reject
with a generic message and never tell the client which check fired.
"""

import logging
import re
import time
from typing import Any, List, Optional

from app.models.quote import SanitizedSubmission

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Honeypot
# ---------------------------------------------------------------------------

# Browsers and password managers sometimes autofill hidden "website" inputs.
# Values containing any of these are treated as accidental, not as bots.
HONEYPOT_AUTOFILL_ALLOWLIST = (
    "http://",
    "https://",
    "www.",
    "example.com",
    "test.com",
    "localhost",
)

# Anything shorter than this is assumed to be a stray keystroke or autofill
HONEYPOT_MIN_SPAM_LENGTH = 10

HONEYPOT_EMPTY = "empty"
HONEYPOT_AUTOFILL = "autofill"
HONEYPOT_SPAM = "spam"


def classify_honeypot(value: Any) -> str:
    """
    Classify the honeypot field value.

    Returns one of:
      "empty"     nothing filled in
      "autofill"  filled, but short or matching a known autofill value
      "spam"      anything else

    Examples:
        ""                     -> "empty"
        "https://"             -> "autofill"
        "buy-cheap-pills-now"  -> "spam"
    """
    if not isinstance(value, str) or not value.strip():
        return HONEYPOT_EMPTY

    stripped = value.strip()
    lower = stripped.lower()
    if len(stripped) < HONEYPOT_MIN_SPAM_LENGTH:
        return HONEYPOT_AUTOFILL
    if any(allowed in lower for allowed in HONEYPOT_AUTOFILL_ALLOWLIST):
        return HONEYPOT_AUTOFILL
    return HONEYPOT_SPAM


# ---------------------------------------------------------------------------
# Content heuristics
# ---------------------------------------------------------------------------

MAX_LINKS_IN_MESSAGE = 2

# Bare www. hosts count as links alongside http(s):// URLs
_LINK_RE = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)

# (indicator, pattern) pairs; indicators are for server-side logs only
_SUSPICIOUS_PATTERNS = [
    (
        "Pharmaceutical or gambling spam keywords",
        re.compile(r"\b(?:viagra|cialis|casino|lottery|winner|congratulations)\b", re.IGNORECASE),
    ),
    (
        "Prize money language",
        re.compile(r"\$\d+.*(?:million|thousand)", re.IGNORECASE),
    ),
    (
        "Call-to-action link text",
        re.compile(r"click\s+here", re.IGNORECASE),
    ),
]


def count_links(text: str) -> int:
    return len(_LINK_RE.findall(text or ""))


def detect_spam(submission: SanitizedSubmission) -> List[str]:
    """
    Run content heuristics over a sanitized submission.

    Returns a list of indicator strings; an empty list means nothing fired.
    """
    indicators: List[str] = []
    message = submission.message or ""

    if count_links(message) > MAX_LINKS_IN_MESSAGE:
        indicators.append("Too many links in message")

    for indicator, pattern in _SUSPICIOUS_PATTERNS:
        if pattern.search(message):
            indicators.append(indicator)

    return indicators


# ---------------------------------------------------------------------------
# Dwell time
# ---------------------------------------------------------------------------

def _now_ms() -> int:
    return int(time.time() * 1000)


def parse_submission_time(value: Any) -> Optional[int]:
    """
    Parse the client-side form render timestamp (epoch millis).

    Accepts ints, floats and numeric strings.  Returns None for anything
    missing or unparsable, in which case the dwell check is skipped.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = re.match(r"^\s*(-?\d+)", value)
        if match:
            return int(match.group(1))
    return None


def submission_elapsed_ms(submission_time: Any, now_ms: Optional[int] = None) -> Optional[int]:
    """Milliseconds between form render and now, or None if unknown."""
    started = parse_submission_time(submission_time)
    if not started:
        return None
    if now_ms is None:
        now_ms = _now_ms()
    return now_ms - started


def is_submission_too_fast(
    submission_time: Any,
    min_dwell_ms: int,
    now_ms: Optional[int] = None,
) -> bool:
    """
    True if the form was submitted implausibly soon after it was displayed.

    A timestamp in the future yields a negative elapsed time and is also
    treated as too fast.
    """
    elapsed = submission_elapsed_ms(submission_time, now_ms)
    if elapsed is None:
        return False
    return elapsed < min_dwell_ms
