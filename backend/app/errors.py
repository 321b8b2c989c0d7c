"""
Error taxonomy for the quote endpoint.

Each class maps to exactly one HTTP response shape (see app.main for the
handlers).  Messages passed to the client are fixed strings; exception
details from the mail transport stay in the server log.
"""

from typing import List, Optional


class QuoteError(Exception):
    """Base class for expected quote-flow failures."""


class QuoteValidationError(QuoteError):
    """User input is malformed.  HTTP 400 with the full list of reasons."""

    error = "Validation failed"

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class EmptySubmission(QuoteValidationError):
    """Body missing, empty, or not a JSON object."""

    error = "Request body is required"

    def __init__(self):
        super().__init__([])


class SpamRejection(QuoteError):
    """
    Honeypot, content heuristic or timing check fired.  HTTP 400 with a
    generic message; ``indicators`` are for logging only.
    """

    error = "Submission rejected"
    public_details = ["Content appears to be spam"]

    def __init__(self, indicators: Optional[List[str]] = None):
        self.indicators = list(indicators or [])
        super().__init__(", ".join(self.indicators) or "spam")


class SubmissionTooFast(SpamRejection):
    """Form submitted faster than a human could fill it in."""

    error = "Please take your time filling out the form"
    public_details = None

    def __init__(self, elapsed_ms: int):
        super().__init__([f"Submitted {elapsed_ms}ms after render"])
        self.elapsed_ms = elapsed_ms


class RateLimitExceeded(QuoteError):
    """Client is over quota.  HTTP 429 with Retry-After."""

    def __init__(self, message: str, retry_after: int, headers: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after
        self.headers = dict(headers or {})


class TransportFailure(QuoteError):
    """The outbound email could not be sent.  HTTP 500 with fallback contact info."""


class MailConfigurationError(TransportFailure):
    """SMTP credentials or destination address are missing."""


class MailDeliveryError(TransportFailure):
    """The SMTP exchange failed or timed out."""
