"""
Pydantic models for the quote request flow.

Models:
  VolumeSelection       — canonical (token, display) pair for weekly volume
  SanitizedSubmission   — cleaned quote form fields, safe to log and email
  ValidationResult      — outcome of a single validation pass
  EmailReceipt          — confirmation returned by the mailer
  QuoteSuccessResponse  — 200 body for POST /api/quote
  QuoteErrorResponse    — 4xx/5xx body for POST /api/quote
  HealthResponse        — body for GET /api/health

The raw submission is deliberately NOT modelled: it arrives as an arbitrary
JSON object and is read key by key by the payload validator.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


NOT_SPECIFIED = "Not specified"


class VolumeSelection(BaseModel):
    """Expected weekly prescription volume, as token plus display label."""

    model_config = ConfigDict(frozen=True)

    token: Optional[str] = None
    display: str = NOT_SPECIFIED


class SanitizedSubmission(BaseModel):
    """Quote form fields after HTML stripping and light normalisation."""

    model_config = ConfigDict(frozen=True)

    pharmacy_name: str = ""
    contact_person: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    weekly_scripts: VolumeSelection = Field(default_factory=VolumeSelection)
    message: str = ""
    company_website: str = ""  # honeypot, expected empty


class ValidationResult(BaseModel):
    """
    Result of validate_quote_payload().

    ``sanitized`` is always populated so failed submissions can still be
    logged without passing raw input along.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: List[str] = Field(default_factory=list)
    sanitized: Optional[SanitizedSubmission] = None


class EmailReceipt(BaseModel):
    """Delivery confirmation from the mailer."""

    message_id: str
    timestamp: str


class ContactInfo(BaseModel):
    phone: str
    email: str


class QuoteSuccessResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str


class QuoteErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[List[str]] = None
    contactInfo: Optional[ContactInfo] = None
    retryAfter: Optional[int] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
