from crm_app.importer.sanitize import INVALID_EMAIL, INVALID_EMAIL_FORMAT, mask_email, sanitize_data


def test_mask_email_keeps_first_and_last_local_characters():
    assert mask_email("jane.doe@example.com") == "j***e@example.com"


def test_mask_email_short_local_part_is_fully_masked():
    assert mask_email("ab@example.com") == "***@example.com"
    assert mask_email("a@example.com") == "***@example.com"


def test_mask_email_rejects_non_addresses():
    assert mask_email("") == INVALID_EMAIL
    assert mask_email(None) == INVALID_EMAIL
    assert mask_email(42) == INVALID_EMAIL
    assert mask_email("no-at-sign") == INVALID_EMAIL_FORMAT
    assert mask_email("a@b@c.com") == INVALID_EMAIL_FORMAT


def test_sanitize_data_masks_nested_email_keys_without_mutating_input():
    record = {
        "email": "jane.doe@example.com",
        "firstName": "Jane",
        "contactEmails": [{"email": "work.jane@corp.io", "type": "work"}],
        "additionalData": {"assistant": {"email": "pa@corp.io"}},
    }

    sanitized = sanitize_data(record)

    assert sanitized == {
        "email": "j***e@example.com",
        "firstName": "Jane",
        "contactEmails": [{"email": "w***e@corp.io", "type": "work"}],
        "additionalData": {"assistant": {"email": "***@corp.io"}},
    }
    assert record["email"] == "jane.doe@example.com"
    assert record["contactEmails"][0]["email"] == "work.jane@corp.io"


def test_sanitize_data_passes_scalars_and_empty_emails_through():
    assert sanitize_data("plain") == "plain"
    assert sanitize_data(None) is None
    assert sanitize_data({"email": ""}) == {"email": ""}
    assert sanitize_data(("a", {"email": "someone@x.com"})) == ["a", {"email": "s***e@x.com"}]
