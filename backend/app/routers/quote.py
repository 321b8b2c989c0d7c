"""
Quote request endpoint.

  POST /quote   — validate, spam-check and email a "request a quote" form

Pipeline, in order:
  1. quote rate limiter (dependency, before the body is read)
  2. empty body check
  3. payload validation and sanitization (a honeypot hit is a spam rejection)
  4. content spam heuristics
  5. minimum dwell time
  6. outbound email

Failures raise app.errors exceptions; the handlers in app.main turn them into
the JSON error bodies.
"""

import logging
from typing import Any, Dict
from uuid import uuid4

from fastapi import APIRouter, Depends, Request, Response

from app.errors import EmptySubmission, QuoteValidationError, SpamRejection, SubmissionTooFast
from app.limits import enforce_quote_rate_limit, get_client_identity
from app.models.quote import QuoteErrorResponse, QuoteSuccessResponse
from app.services.mailer import send_quote_email
from app.services.quote_validator import ERR_SPAM, payload_summary, validate_quote_payload
from app.services.rate_limiter import RateLimitDecision
from app.services.spam import detect_spam, is_submission_too_fast, submission_elapsed_ms

logger = logging.getLogger(__name__)

router = APIRouter()

SUCCESS_MESSAGE = "Quote request submitted successfully"


async def _read_payload(request: Request) -> Dict[str, Any]:
    """Parse the JSON body; anything that is not a non-empty object is empty."""
    try:
        payload = await request.json()
    except ValueError:
        raise EmptySubmission()
    if not isinstance(payload, dict) or not payload:
        raise EmptySubmission()
    return payload


@router.post(
    "/quote",
    response_model=QuoteSuccessResponse,
    responses={
        400: {"model": QuoteErrorResponse, "description": "Validation, spam or timing failure"},
        429: {"model": QuoteErrorResponse, "description": "Too many quote requests"},
        500: {"model": QuoteErrorResponse, "description": "Email delivery failed"},
    },
)
async def submit_quote(
    request: Request,
    response: Response,
    rate_limit: RateLimitDecision = Depends(enforce_quote_rate_limit),
):
    """
    Accept a quote request and forward it by email.

    The body is a JSON object with pharmacy_name, contact_person, phone,
    email, address, city, state, weekly_scripts (or legacy monthly_scripts),
    message, company_website (honeypot) and submission_time (epoch millis
    when the form was rendered).
    """
    request_id = uuid4().hex[:9]
    response.headers.update(rate_limit.headers())

    logger.info(
        "Quote form submission received [%s] client=%s user_agent=%s",
        request_id,
        get_client_identity(request),
        request.headers.get("user-agent", ""),
    )

    try:
        payload = await _read_payload(request)
    except EmptySubmission:
        logger.warning("Empty request body [%s]", request_id)
        raise

    logger.debug("Request payload [%s]: %s", request_id, payload_summary(payload))

    validation = validate_quote_payload(payload)
    if ERR_SPAM in validation.errors:
        # Bots get the generic spam response, never the field-level reasons
        logger.warning("Honeypot rejection [%s]: %s", request_id, validation.errors)
        raise SpamRejection(["Honeypot field filled"])
    if not validation.valid:
        logger.warning("Validation failed [%s]: %s", request_id, validation.errors)
        raise QuoteValidationError(validation.errors)

    sanitized = validation.sanitized

    indicators = detect_spam(sanitized)
    if indicators:
        logger.warning("Spam detected [%s]: %s", request_id, indicators)
        raise SpamRejection(indicators)

    min_dwell_ms = request.app.state.min_dwell_ms
    submission_time = payload.get("submission_time")
    if is_submission_too_fast(submission_time, min_dwell_ms):
        elapsed = submission_elapsed_ms(submission_time)
        logger.warning(
            "Submission too fast - possible bot [%s]: %sms < %sms",
            request_id,
            elapsed,
            min_dwell_ms,
        )
        raise SubmissionTooFast(elapsed)

    logger.info(
        "Sending quote email [%s] pharmacy=%r contact=%r",
        request_id,
        sanitized.pharmacy_name,
        sanitized.contact_person,
    )
    try:
        receipt = await send_quote_email(sanitized)
    except Exception:
        logger.exception("Quote email failed [%s]", request_id)
        raise

    logger.info("Quote email sent [%s] message_id=%s", request_id, receipt.message_id)
    return QuoteSuccessResponse(message=SUCCESS_MESSAGE, timestamp=receipt.timestamp)
