"""
Row-level validation rules for bulk contact imports.

Each rule inspects one raw contact record and emits zero or more
``ContactValidationError`` items. Rules never touch the database; duplicate
detection happens afterwards in :mod:`.duplicates`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

from flask import current_app, has_app_context

from crm_app.importer.sanitize import mask_email, sanitize_data


class ValidationErrorKind(str, Enum):
    """Category of a field-level validation failure."""

    MISSING_FIELD = "missingField"
    INVALID_FORMAT = "invalidFormat"
    TYPE_MISMATCH = "typeMismatch"
    LENGTH_EXCEEDED = "lengthExceeded"
    STRUCTURE_ERROR = "structureError"
    OTHER = "other"


@dataclass(frozen=True)
class ContactValidationError:
    """
    One field-level problem found in a contact row.

    Attributes:
        field: Business field name the error refers to (``contact`` for
            whole-record structure errors).
        message: Human-friendly message prefixed with the 1-based row number.
        kind: Error category, serialized under the ``type`` key.
    """

    field: str
    message: str
    kind: ValidationErrorKind

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "type": self.kind.value}


_EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Field name -> maximum string length accepted by the contacts table.
FIELD_LENGTH_LIMITS: tuple[tuple[str, int], ...] = (
    ("firstName", 100),
    ("lastName", 100),
    ("title", 200),
    ("city", 100),
    ("state", 100),
    ("country", 100),
    ("currentCompanyName", 255),
)


class ContactRule:
    """Base class for contact validation rules."""

    code: str = ""

    def evaluate(self, record: Mapping[str, Any], row_number: int) -> Iterable[ContactValidationError]:
        raise NotImplementedError


class EmailRule(ContactRule):
    """Email is required, must be a string, and must look like ``local@domain.tld``."""

    code = "email"

    def evaluate(self, record: Mapping[str, Any], row_number: int) -> Iterable[ContactValidationError]:
        email = record.get("email")
        if email is None or email == "":
            return [
                ContactValidationError(
                    field="email",
                    message=f"Row {row_number}: Email is required",
                    kind=ValidationErrorKind.MISSING_FIELD,
                )
            ]
        if not isinstance(email, str):
            return [
                ContactValidationError(
                    field="email",
                    message=f"Row {row_number}: Email must be a string",
                    kind=ValidationErrorKind.TYPE_MISMATCH,
                )
            ]
        if _EMAIL_REGEX.match(email):
            return []
        return [
            ContactValidationError(
                field="email",
                message=f"Row {row_number}: Invalid email format: {mask_email(email)}",
                kind=ValidationErrorKind.INVALID_FORMAT,
            )
        ]


class DateOfResearchRule(ContactRule):
    """``dateOfResearch`` must be a string or a date-like value when present."""

    code = "dateOfResearch"

    def evaluate(self, record: Mapping[str, Any], row_number: int) -> Iterable[ContactValidationError]:
        value = record.get("dateOfResearch")
        if value is None:
            return []
        # JSON bodies can only carry strings; mappings mirror serialized date objects
        if isinstance(value, (str, date, Mapping)):
            return []
        return [
            ContactValidationError(
                field="dateOfResearch",
                message=f"Row {row_number}: dateOfResearch should be a string or Date object",
                kind=ValidationErrorKind.TYPE_MISMATCH,
            )
        ]


class LengthRule(ContactRule):
    """String fields must fit their column widths."""

    code = "length"

    def __init__(self, limits: Sequence[tuple[str, int]] = FIELD_LENGTH_LIMITS) -> None:
        self.limits = tuple(limits)

    def evaluate(self, record: Mapping[str, Any], row_number: int) -> Iterable[ContactValidationError]:
        errors: list[ContactValidationError] = []
        for field_name, max_length in self.limits:
            value = record.get(field_name)
            if isinstance(value, str) and len(value) > max_length:
                errors.append(
                    ContactValidationError(
                        field=field_name,
                        message=(
                            f"Row {row_number}: {field_name} exceeds maximum length of "
                            f"{max_length} characters"
                        ),
                        kind=ValidationErrorKind.LENGTH_EXCEEDED,
                    )
                )
        return errors


class AdditionalDataRule(ContactRule):
    """``additionalData`` must be a structured object, not a primitive."""

    code = "additionalData"

    def evaluate(self, record: Mapping[str, Any], row_number: int) -> Iterable[ContactValidationError]:
        value = record.get("additionalData")
        if value is None or isinstance(value, (Mapping, list)):
            return []
        return [
            ContactValidationError(
                field="additionalData",
                message=f"Row {row_number}: additionalData must be an object",
                kind=ValidationErrorKind.TYPE_MISMATCH,
            )
        ]


def _is_utf8_encodable(value: Any) -> bool:
    if isinstance(value, str):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError:
            return False
        return True
    if isinstance(value, Mapping):
        return all(_is_utf8_encodable(key) and _is_utf8_encodable(item) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return all(_is_utf8_encodable(item) for item in value)
    return True


class TextEncodingRule(ContactRule):
    """Every string in the row must be valid UTF-8 (no lone surrogates)."""

    code = "encoding"

    def evaluate(self, record: Mapping[str, Any], row_number: int) -> Iterable[ContactValidationError]:
        return [
            ContactValidationError(
                field=str(field_name),
                message=f"Row {row_number}: {field_name} contains characters that cannot be encoded as UTF-8",
                kind=ValidationErrorKind.INVALID_FORMAT,
            )
            for field_name, value in record.items()
            if not (_is_utf8_encodable(field_name) and _is_utf8_encodable(value))
        ]


CONTACT_RULES: Sequence[ContactRule] = (
    EmailRule(),
    TextEncodingRule(),
    DateOfResearchRule(),
    LengthRule(),
    AdditionalDataRule(),
)


def structure_error(row_number: int) -> ContactValidationError:
    return ContactValidationError(
        field="contact",
        message=f"Row {row_number}: Contact data is not a valid object",
        kind=ValidationErrorKind.STRUCTURE_ERROR,
    )


def validate_contact(
    record: Any,
    index: int,
    rules: Sequence[ContactRule] | None = None,
) -> list[ContactValidationError]:
    """
    Validate one raw contact record.

    Args:
        record: Loosely-typed row taken from the request body.
        index: Zero-based position of the row in the batch.
        rules: Optional override of the rule set; defaults to ``CONTACT_RULES``.

    Returns:
        Ordered list of errors; an empty list means the row is valid.
    """

    row_number = index + 1
    if not isinstance(record, Mapping):
        return [structure_error(row_number)]

    errors: list[ContactValidationError] = []
    for rule in rules if rules is not None else CONTACT_RULES:
        errors.extend(rule.evaluate(record, row_number))

    if errors and has_app_context():
        current_app.logger.debug(
            "Validation errors for contact row %s: %s (contact=%s)",
            row_number,
            [error.as_dict() for error in errors],
            sanitize_data(record),
        )
    return errors
