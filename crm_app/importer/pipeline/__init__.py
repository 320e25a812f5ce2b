"""Contact import pipeline helpers."""

from __future__ import annotations

from .coordinator import (
    REPEAT_OF_UNSTORED_REASON,
    ContactInsertError,
    ImportCandidate,
    ImportReport,
    ImportRequestError,
    ImportStatus,
    import_contacts,
    insert_contact,
)
from .duplicates import DUPLICATE_EMAIL_REASON, find_existing_contact_id
from .normalize import NormalizedContact, normalize_contact, parse_timestamp
from .tags import (
    TagReconciliationError,
    link_tags,
    merge_tag_names,
    parse_tag_string,
    reconcile_contact_tags,
    upsert_tag,
)
from .validation import ContactValidationError, ValidationErrorKind, validate_contact

__all__ = [
    "ContactInsertError",
    "ContactValidationError",
    "DUPLICATE_EMAIL_REASON",
    "ImportCandidate",
    "ImportReport",
    "ImportRequestError",
    "ImportStatus",
    "NormalizedContact",
    "REPEAT_OF_UNSTORED_REASON",
    "TagReconciliationError",
    "ValidationErrorKind",
    "find_existing_contact_id",
    "import_contacts",
    "insert_contact",
    "link_tags",
    "merge_tag_names",
    "normalize_contact",
    "parse_tag_string",
    "parse_timestamp",
    "reconcile_contact_tags",
    "upsert_tag",
    "validate_contact",
]
