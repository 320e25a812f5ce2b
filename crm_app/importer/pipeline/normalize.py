"""
Normalization of validated contact rows into storage-ready payloads.

The mapping from request keys to contact columns is explicit: keys that are
not listed here are dropped rather than persisted.
"""

from __future__ import annotations

import json
import math
import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Mapping

# Request key -> Contact column for plain optional text fields.
TEXT_FIELDS: tuple[tuple[str, str], ...] = (
    ("firstName", "first_name"),
    ("lastName", "last_name"),
    ("title", "title"),
    ("currentCompanyName", "current_company_name"),
    ("currentCompanyId", "current_company_id"),
    ("leadStatus", "lead_status"),
    ("linkedinUrl", "linkedin_url"),
    ("city", "city"),
    ("state", "state"),
    ("country", "country"),
    ("photoUrl", "photo_url"),
    ("headline", "headline"),
    ("companyWebsiteUrl", "company_website_url"),
    ("twitterUrl", "twitter_url"),
    ("facebookUrl", "facebook_url"),
    ("githubUrl", "github_url"),
    ("companyLinkedinUrl", "company_linkedin_url"),
    ("prospectResearch", "prospect_research"),
    ("companyResearch", "company_research"),
    ("previousMessageCopy", "previous_message_copy"),
    ("previousMessageSubjectLine", "previous_message_subject_line"),
    ("previousMessageId", "previous_message_id"),
    ("threadId", "thread_id"),
    ("emailSender", "email_sender"),
    ("originalOutboundRepName", "original_outbound_rep_name"),
    ("allEmployees", "all_employees"),
    ("linkedInPosts", "linkedin_posts"),
    ("linkedInProfilePhoto", "linkedin_profile_photo"),
    ("initialLinkedInMessageCopy", "initial_linkedin_message_copy"),
    ("providerId", "provider_id"),
    ("mutualConnections", "mutual_connections"),
    ("additionalResearch", "additional_research"),
    ("currentScenario", "current_scenario"),
    ("outboundRepName", "outbound_rep_name"),
    ("phone", "phone"),
    ("seoDescription", "seo_description"),
    ("scenarioName", "scenario_name"),
    ("emailStatus", "email_status"),
)

# Request key -> Contact column for JSON documents stored as text.
JSON_FIELDS: tuple[tuple[str, str], ...] = (
    ("employmentHistory", "employment_history"),
    ("phoneNumbers", "phone_numbers"),
    ("contactEmails", "contact_emails"),
    ("additionalData", "additional_data"),
)

_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
)


@dataclass(frozen=True)
class NormalizedContact:
    """Canonical contact payload ready for a single INSERT."""

    id: str
    organization_id: str
    email: str
    first_name: str | None
    last_name: str | None
    full_name: str | None
    title: str | None
    current_company_name: str | None
    current_company_id: str | None
    lead_status: str | None
    linkedin_url: str | None
    city: str | None
    state: str | None
    country: str | None
    photo_url: str | None
    headline: str | None
    company_website_url: str | None
    twitter_url: str | None
    facebook_url: str | None
    github_url: str | None
    company_linkedin_url: str | None
    employment_history: str
    phone_numbers: str
    contact_emails: str
    last_activity_at: datetime | None
    prospect_research: str | None
    company_research: str | None
    previous_message_copy: str | None
    previous_message_subject_line: str | None
    previous_message_id: str | None
    thread_id: str | None
    email_sender: str | None
    original_outbound_rep_name: str | None
    date_of_research: datetime | None
    all_employees: str | None
    linkedin_posts: str | None
    linkedin_profile_photo: str | None
    initial_linkedin_message_copy: str | None
    provider_id: str | None
    mutual_connections: str | None
    additional_research: str | None
    current_scenario: str | None
    outbound_rep_name: str | None
    phone: str | None
    seo_description: str | None
    scenario_name: str | None
    email_status: str | None
    additional_data: str
    created_at: datetime
    updated_at: datetime

    def as_row(self) -> dict[str, Any]:
        """Column/value mapping for ``INSERT INTO contacts``."""
        return asdict(self)


def normalize_contact(
    record: Mapping[str, Any],
    *,
    organization_id: str,
    batch_timestamp: datetime,
    id_factory: Callable[[], uuid.UUID | str] = uuid.uuid4,
) -> NormalizedContact:
    """
    Convert a validated raw record into a :class:`NormalizedContact`.

    Args:
        record: Raw row that already passed validation and duplicate checks.
        organization_id: Tenant that will own the contact.
        batch_timestamp: Single instant shared by every row of the batch, used
            for both ``created_at`` and ``updated_at``.
        id_factory: Source of fresh identifiers; never derived from input.
    """

    text_values = {column: coerce_optional_text(record.get(key)) for key, column in TEXT_FIELDS}
    json_values = {column: encode_json_field(record.get(key)) for key, column in JSON_FIELDS}

    return NormalizedContact(
        id=str(id_factory()),
        organization_id=organization_id,
        email=record["email"],
        full_name=build_full_name(
            coerce_optional_text(record.get("fullName")),
            text_values["first_name"],
            text_values["last_name"],
        ),
        date_of_research=parse_timestamp(record.get("dateOfResearch")),
        last_activity_at=parse_timestamp(record.get("lastActivityAt")),
        created_at=batch_timestamp,
        updated_at=batch_timestamp,
        **text_values,
        **json_values,
    )


def build_full_name(full_name: str | None, first_name: str | None, last_name: str | None) -> str | None:
    """Prefer an explicit full name, else join whichever name parts exist."""
    if full_name:
        return full_name
    parts = [part for part in (first_name, last_name) if part]
    return " ".join(parts) if parts else None


def coerce_optional_text(value: Any) -> str | None:
    """Return a stripped string, or ``None`` for absent and blank values."""
    if value is None:
        return None
    if isinstance(value, str):
        token = value.strip()
        return token or None
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, default=str)
    return str(value)


def encode_json_field(value: Any) -> str:
    """JSON-encode a structured sub-field, defaulting to an empty object."""
    if value is None or value == "":
        return "{}"
    return json.dumps(value, default=str)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a loosely-typed timestamp into an aware UTC ``datetime``.

    Accepts ISO-8601 dates and datetimes (including a trailing ``Z``), a few
    common US formats, epoch milliseconds, and ``date``/``datetime`` objects.
    Returns ``None`` for anything that cannot be interpreted.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return _from_epoch_millis(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    parsed = _parse_iso(text)
    if parsed is None:
        for fmt in _DATE_FORMATS:
            parsed = _parse_with_format(text, fmt)
            if parsed is not None:
                break
    if parsed is None:
        return None
    return _as_utc(parsed)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_iso(text: str) -> datetime | None:
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def _parse_with_format(text: str, fmt: str) -> datetime | None:
    try:
        return datetime.strptime(text, fmt)
    except ValueError:
        return None


def _from_epoch_millis(value: int | float) -> datetime | None:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
