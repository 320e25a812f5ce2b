from datetime import date

import pytest

from crm_app.importer.pipeline.validation import (
    ContactValidationError,
    EmailRule,
    ValidationErrorKind,
    validate_contact,
)


def _kinds(errors):
    return [(error.field, error.kind) for error in errors]


def test_valid_contact_has_no_errors():
    record = {"email": "ada@example.org", "firstName": "Ada", "dateOfResearch": "2024-01-15"}
    assert validate_contact(record, 0) == []


def test_missing_email_is_reported_as_missing_field():
    errors = validate_contact({"firstName": "Ada"}, 2)

    assert _kinds(errors) == [("email", ValidationErrorKind.MISSING_FIELD)]
    assert errors[0].message == "Row 3: Email is required"


def test_empty_email_is_reported_as_missing_field():
    errors = validate_contact({"email": ""}, 0)
    assert _kinds(errors) == [("email", ValidationErrorKind.MISSING_FIELD)]


def test_non_string_email_is_a_type_mismatch():
    errors = validate_contact({"email": 12345}, 0)

    assert _kinds(errors) == [("email", ValidationErrorKind.TYPE_MISMATCH)]
    assert errors[0].message == "Row 1: Email must be a string"


@pytest.mark.parametrize("email", ["bad-email", "missing@tld", "two words@example.com", "@example.com"])
def test_malformed_email_is_invalid_format_with_masked_value(email):
    errors = validate_contact({"email": email}, 0)

    assert _kinds(errors) == [("email", ValidationErrorKind.INVALID_FORMAT)]
    assert errors[0].message.startswith("Row 1: Invalid email format: ")
    if "@" not in email:
        assert errors[0].message.endswith("[invalid email format]")


def test_invalid_email_message_never_contains_raw_local_part():
    errors = validate_contact({"email": "secret.person@nowhere"}, 0)
    assert "secret.person" not in errors[0].message
    assert "s***n@nowhere" in errors[0].message


def test_date_of_research_must_be_string_or_date():
    assert validate_contact({"email": "a@x.com", "dateOfResearch": date(2024, 1, 15)}, 0) == []

    errors = validate_contact({"email": "a@x.com", "dateOfResearch": 20240115}, 0)
    assert _kinds(errors) == [("dateOfResearch", ValidationErrorKind.TYPE_MISMATCH)]
    assert errors[0].message == "Row 1: dateOfResearch should be a string or Date object"


def test_length_limits_are_enforced_per_field():
    record = {
        "email": "a@x.com",
        "firstName": "F" * 101,
        "lastName": "L" * 100,
        "title": "T" * 201,
        "currentCompanyName": "C" * 256,
    }

    errors = validate_contact(record, 4)

    assert _kinds(errors) == [
        ("firstName", ValidationErrorKind.LENGTH_EXCEEDED),
        ("title", ValidationErrorKind.LENGTH_EXCEEDED),
        ("currentCompanyName", ValidationErrorKind.LENGTH_EXCEEDED),
    ]
    assert errors[0].message == "Row 5: firstName exceeds maximum length of 100 characters"


def test_additional_data_must_be_structured():
    assert validate_contact({"email": "a@x.com", "additionalData": {"source": "csv"}}, 0) == []

    errors = validate_contact({"email": "a@x.com", "additionalData": "free text"}, 0)
    assert _kinds(errors) == [("additionalData", ValidationErrorKind.TYPE_MISMATCH)]


def test_all_errors_are_collected_in_rule_order():
    record = {"email": "nope", "city": "X" * 150, "additionalData": 7}

    errors = validate_contact(record, 0)

    assert [error.field for error in errors] == ["email", "city", "additionalData"]


@pytest.mark.parametrize("record", [None, "a@x.com", ["a@x.com"], 3])
def test_non_object_rows_are_structure_errors(record):
    errors = validate_contact(record, 1)

    assert errors == [
        ContactValidationError(
            field="contact",
            message="Row 2: Contact data is not a valid object",
            kind=ValidationErrorKind.STRUCTURE_ERROR,
        )
    ]


def test_error_serializes_kind_under_type_key():
    error = validate_contact({}, 0)[0]
    assert error.as_dict() == {
        "field": "email",
        "message": "Row 1: Email is required",
        "type": "missingField",
    }


def test_custom_rule_set_can_be_supplied():
    errors = validate_contact({"email": "a@x.com", "firstName": "F" * 500}, 0, rules=[EmailRule()])
    assert errors == []


def test_lone_surrogates_are_rejected_as_invalid_format():
    errors = validate_contact(
        {"email": "ada@example.org", "firstName": "\udc80", "additionalData": {"note": ["ok", "\ud800"]}},
        0,
    )

    assert _kinds(errors) == [
        ("firstName", ValidationErrorKind.INVALID_FORMAT),
        ("additionalData", ValidationErrorKind.INVALID_FORMAT),
    ]
    assert errors[0].message == "Row 1: firstName contains characters that cannot be encoded as UTF-8"
