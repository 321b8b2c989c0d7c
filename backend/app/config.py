"""
Runtime configuration.

All settings come from environment variables, optionally loaded from a
``.env`` file.  Values are read once at import time; tests override them by
passing explicit arguments (limiter sizes, MailSettings) rather than by
mutating this module.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    """Read an integer env var, falling back to ``default`` on bad input."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
APP_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------

RATE_LIMIT_WINDOW_MS = _env_int("RATE_LIMIT_WINDOW_MS", 60000)
RATE_LIMIT_MAX_REQUESTS = _env_int("RATE_LIMIT_MAX_REQUESTS", 30)
QUOTE_RATE_LIMIT_WINDOW_MS = _env_int("QUOTE_RATE_LIMIT_WINDOW_MS", 60000)
QUOTE_RATE_LIMIT_MAX_REQUESTS = _env_int("QUOTE_RATE_LIMIT_MAX_REQUESTS", 3)

# limits storage URI shared by both limiters; memory:// is per process
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

# Read X-Forwarded-For only when running behind a proxy we control
TRUST_PROXY = _env_bool("TRUST_PROXY", False)

# ---------------------------------------------------------------------------
# Anti-spam
# ---------------------------------------------------------------------------

MIN_SUBMISSION_DWELL_MS = _env_int("MIN_SUBMISSION_DWELL_MS", 2000)


def get_cors_origins() -> List[str]:
    """
    Extra CORS origins from the CORS_ORIGINS env var (comma-separated).

    Duplicates are removed while preserving order.
    """
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    origins: List[str] = []
    for origin in cors_env.split(","):
        origin = origin.strip()
        if origin and origin not in origins:
            origins.append(origin)
    return origins


# ---------------------------------------------------------------------------
# Outbound mail
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MailSettings:
    """SMTP settings for the quote notification email."""

    server: str = "smtp.gmail.com"
    port: int = 465
    username: Optional[str] = None
    password: Optional[str] = None
    mail_from: Optional[str] = None
    mail_to: Optional[str] = None
    starttls: bool = False
    ssl_tls: bool = True
    timeout_seconds: int = 15

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password and self.mail_to)


def get_mail_settings() -> MailSettings:
    """
    Build MailSettings from the environment.

    MAIL_FROM and MAIL_TO both default to MAIL_USER, so a single Gmail
    account with an app password is enough to receive quote requests.
    """
    username = os.getenv("MAIL_USER") or None
    return MailSettings(
        server=os.getenv("MAIL_SERVER", "smtp.gmail.com"),
        port=_env_int("MAIL_PORT", 465),
        username=username,
        password=os.getenv("MAIL_APP_PASS") or None,
        mail_from=os.getenv("MAIL_FROM") or username,
        mail_to=os.getenv("MAIL_TO") or username,
        starttls=_env_bool("MAIL_STARTTLS", False),
        ssl_tls=_env_bool("MAIL_SSL_TLS", True),
        timeout_seconds=_env_int("MAIL_TIMEOUT_SECONDS", 15),
    )


def get_contact_info() -> dict:
    """Fallback contact details shown to users when email delivery fails."""
    return {
        "phone": os.getenv("CONTACT_PHONE", "(313) 333-2133"),
        "email": os.getenv("CONTACT_EMAIL") or os.getenv("MAIL_TO") or os.getenv("MAIL_USER") or "",
    }
