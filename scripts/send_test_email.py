#!/usr/bin/env python3
"""
Dev helper: send one sample quote email through the real mailer.

Reads MAIL_* settings from the environment or a .env file (via app.config)
and sends a fixed sample submission to MAIL_TO.  Run from the project root:

    python scripts/send_test_email.py
"""

import asyncio
import sys
from pathlib import Path

# scripts/ is not a package; make backend/ importable when run directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from app.config import get_mail_settings  # noqa: E402
from app.errors import TransportFailure  # noqa: E402
from app.models.quote import SanitizedSubmission, VolumeSelection  # noqa: E402
from app.services.mailer import send_quote_email  # noqa: E402

SAMPLE = SanitizedSubmission(
    pharmacy_name="Detroit Test Pharmacy",
    contact_person="Sarah Johnson",
    phone="(313) 555-9876",
    email="sarah.johnson@detroitpharmacy.com",
    address="456 Pharmacy Ave",
    city="Detroit",
    state="MI",
    weekly_scripts=VolumeSelection(token="25to125", display="25 to 125"),
    message=(
        "Hello, we are interested in partnering with DashRx for prescription "
        "delivery services and would like to learn more about pricing."
    ),
)


def main() -> int:
    settings = get_mail_settings()
    print(f"Sending test email to: {settings.mail_to or '(MAIL_TO not set)'}")

    try:
        receipt = asyncio.run(send_quote_email(SAMPLE, settings=settings))
    except TransportFailure as exc:
        print(f"\nEMAIL FAILED: {exc}", file=sys.stderr)
        if exc.__cause__ is not None:
            print(f"Cause: {exc.__cause__!r}", file=sys.stderr)
        return 1

    print("\nEMAIL SENT")
    print(f"Message ID: {receipt.message_id}")
    print(f"Timestamp : {receipt.timestamp}")
    print(f"Reply-To  : {SAMPLE.email}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
