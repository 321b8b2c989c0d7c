#!/usr/bin/env python3
"""
Dev helper: submit a sample quote request to a running DashRx backend.

Builds a realistic quote form payload, POST-s it to /api/quote and prints the
response.  Useful for checking validation, spam and rate-limit behaviour
end to end without opening the site.

Usage
-----
# Basic — valid submission against localhost:8000
python scripts/test_quote_form.py

# Trip the minimum dwell-time check
python scripts/test_quote_form.py --fast

# Fill the honeypot field
python scripts/test_quote_form.py --honeypot buy-cheap-pills-now

# Use the legacy monthly_scripts field
python scripts/test_quote_form.py --legacy-volume "100–500"

# Send several requests in a row to see rate limiting kick in
python scripts/test_quote_form.py --repeat 5

# Target a different backend URL
python scripts/test_quote_form.py --url http://staging.example.com
"""

import argparse
import json
import sys
import textwrap
import time

import httpx


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

def _build_payload(args: argparse.Namespace) -> dict:
    """Return a quote form payload shaped like the one the site sends."""
    now_ms = int(time.time() * 1000)
    dwell_ms = 500 if args.fast else 3000

    payload = {
        "pharmacy_name": args.pharmacy,
        "contact_person": "John Smith",
        "phone": "(313) 555-0123",
        "email": args.email,
        "address": "123 Main Street",
        "city": "Detroit",
        "state": "MI",
        "message": (
            "We are interested in your delivery services for our pharmacy "
            "and would like to discuss partnership opportunities."
        ),
        "company_website": args.honeypot,
        "submission_time": now_ms - dwell_ms,
    }
    if args.legacy_volume:
        payload["monthly_scripts"] = args.legacy_volume
    else:
        payload["weekly_scripts"] = args.volume
    return payload


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    retry_after = response.headers.get("Retry-After")
    if retry_after:
        print(f"Retry-After: {retry_after}s")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    parser = argparse.ArgumentParser(
        prog="test_quote_form.py",
        description="Submit a sample quote request to the DashRx backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/test_quote_form.py
              python scripts/test_quote_form.py --fast
              python scripts/test_quote_form.py --repeat 5
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument("--pharmacy", default="Metro Detroit Test Pharmacy", help="Pharmacy name")
    parser.add_argument("--email", default="john.smith@testpharmacy.com", help="Submitter email")
    parser.add_argument("--volume", default="25to125", help="weekly_scripts token (default: 25to125)")
    parser.add_argument(
        "--legacy-volume",
        default=None,
        metavar="VALUE",
        help="Send the legacy monthly_scripts field instead of weekly_scripts",
    )
    parser.add_argument("--honeypot", default="", help="Value for the hidden company_website field")
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Claim the form was rendered 500ms ago (should be rejected)",
    )
    parser.add_argument("--repeat", type=int, default=1, help="Number of submissions to send")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload JSON without sending it.",
    )

    args = parser.parse_args()

    payload = _build_payload(args)
    endpoint = f"{args.url.rstrip('/')}/api/quote"

    print(f"Endpoint : {endpoint}")
    print(f"Pharmacy : {args.pharmacy}")
    print(f"Repeat   : {args.repeat}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0

    exit_code = 0
    with httpx.Client(timeout=30) as client:
        for attempt in range(1, args.repeat + 1):
            print(f"\n--- Submission {attempt}/{args.repeat}")
            try:
                response = client.post(endpoint, json=payload)
            except httpx.HTTPError as exc:
                print(f"ERROR: Could not reach {endpoint}: {exc}", file=sys.stderr)
                return 1
            _print_response(response)
            if response.status_code != 200:
                exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
