"""
Batch coordinator for bulk contact imports.

Rows are validated, checked for duplicates and normalized in input order.
Every accepted contact is then inserted in its own transaction together with
its tag links, so one failing contact never affects its siblings.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Sequence

from flask import current_app, has_app_context
from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from crm_app.importer.metrics import record_import, record_row_outcome, record_tag_links
from crm_app.importer.sanitize import mask_email, sanitize_data
from crm_app.models import Contact, db
from crm_app.models.base import utcnow

from .duplicates import DUPLICATE_EMAIL_REASON, find_existing_contact_id
from .normalize import NormalizedContact, normalize_contact
from .tags import TagReconciliationError, merge_tag_names, parse_tag_string, reconcile_contact_tags
from .validation import ContactValidationError, ValidationErrorKind, validate_contact

DEFAULT_BATCH_SIZE = 50
INSERT_FAILURE_MESSAGE = "Failed to insert contact and/or its tags"
REPEAT_OF_UNSTORED_REASON = "Duplicate email within batch; first occurrence was not stored"


class ImportRequestError(ValueError):
    """Raised when the import request itself is malformed (HTTP 400)."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ContactInsertError(RuntimeError):
    """Raised when the contact row was not written."""


class ImportStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


_HTTP_STATUS = {
    ImportStatus.SUCCESS: 200,
    ImportStatus.PARTIAL: 207,
    ImportStatus.FAILED: 500,
}


@dataclass(frozen=True)
class ImportCandidate:
    """A normalized contact waiting for insertion, with its merged tag names."""

    row_number: int
    contact: NormalizedContact
    tag_names: tuple[str, ...]


@dataclass
class ImportReport:
    """Aggregate outcome of one import batch."""

    success_count: int = 0
    validation_errors: list[dict[str, Any]] = field(default_factory=list)
    skipped_duplicates: list[dict[str, Any]] = field(default_factory=list)
    database_errors: list[dict[str, Any]] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def validation_error_count(self) -> int:
        return len(self.validation_errors)

    @property
    def duplicate_skip_count(self) -> int:
        return len(self.skipped_duplicates)

    @property
    def success(self) -> bool:
        return not self.database_errors

    @property
    def status(self) -> ImportStatus:
        if self.database_errors:
            return ImportStatus.FAILED
        if self.validation_errors or self.skipped_duplicates:
            return ImportStatus.PARTIAL
        return ImportStatus.SUCCESS

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.status]

    def add_validation_failure(
        self,
        row_number: int,
        errors: Sequence[ContactValidationError],
        record: Any,
    ) -> None:
        self.validation_errors.append(
            {
                "row": row_number,
                "message": "Validation failed: " + ", ".join(error.message for error in errors),
                "errors": [error.as_dict() for error in errors],
                "contact": sanitize_data(record),
            }
        )

    def add_duplicate(self, row_number: int, email: str, reason: str = DUPLICATE_EMAIL_REASON) -> None:
        self.skipped_duplicates.append({"row": row_number, "email": email, "reason": reason})

    def add_database_error(self, candidate: ImportCandidate, exc: Exception) -> None:
        self.database_errors.append(
            {
                "email": candidate.contact.email,
                "rowIndex": candidate.row_number,
                "message": INSERT_FAILURE_MESSAGE,
                "error": str(exc),
            }
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the bulk-create response body."""
        return {
            "success": self.success,
            "successCount": self.success_count,
            "validationErrorCount": self.validation_error_count,
            "duplicateSkipCount": self.duplicate_skip_count,
            "validationErrors": list(self.validation_errors),
            "skippedDuplicates": list(self.skipped_duplicates),
            "databaseErrors": list(self.database_errors),
        }


def _log_info(message: str, *args: Any) -> None:
    if has_app_context():
        current_app.logger.info(message, *args)


def _log_debug(message: str, *args: Any) -> None:
    if has_app_context() and current_app.config.get("IMPORTER_DEBUG_LOGGING"):
        current_app.logger.debug(message, *args)


def _resolve_batch_size(batch_size: int | None) -> int:
    if batch_size is None and has_app_context():
        batch_size = current_app.config.get("IMPORTER_BATCH_SIZE")
    try:
        size = int(batch_size) if batch_size is not None else DEFAULT_BATCH_SIZE
    except (TypeError, ValueError):
        size = DEFAULT_BATCH_SIZE
    return max(size, 1)


def _row_tag_names(record: Mapping[str, Any]) -> list[str]:
    raw = record.get("tags")
    if isinstance(raw, str):
        return parse_tag_string(raw)
    if isinstance(raw, (list, tuple)):
        return [item for item in raw if isinstance(item, str)]
    return []


def insert_contact(session: Session, contact: NormalizedContact) -> None:
    """Insert one normalized contact; raises if the row was not written."""
    result = session.execute(insert(Contact.__table__).values(**contact.as_row()))
    if result.rowcount != 1:
        raise ContactInsertError(f"Contact insert affected {result.rowcount} rows")


def _insert_candidate(session: Session, candidate: ImportCandidate, report: ImportReport) -> bool:
    contact = candidate.contact
    try:
        insert_contact(session, contact)
        tag_ids = reconcile_contact_tags(
            session,
            contact_id=contact.id,
            organization_id=contact.organization_id,
            tag_names=candidate.tag_names,
        )
        session.commit()
    except (SQLAlchemyError, UnicodeError, TagReconciliationError, ContactInsertError) as exc:
        session.rollback()
        report.add_database_error(candidate, exc)
        if has_app_context():
            current_app.logger.error(
                "Row %s: failed to insert contact %s: %s",
                candidate.row_number,
                mask_email(contact.email),
                exc,
            )
        return False

    record_tag_links(len(tag_ids))
    return True


def _prepare_candidates(
    rows: Sequence[Any],
    shared_tags: tuple[str, ...],
    *,
    organization_id: str,
    session: Session,
    batch_timestamp: datetime,
    id_factory: Callable[[], uuid.UUID | str],
    report: ImportReport,
) -> tuple[list[ImportCandidate], list[tuple[int, str]]]:
    candidates: list[ImportCandidate] = []
    repeats: list[tuple[int, str]] = []
    accepted_emails: set[str] = set()

    for index, record in enumerate(rows):
        row_number = index + 1
        errors = validate_contact(record, index)
        if errors:
            report.add_validation_failure(row_number, errors, record)
            continue

        email = record["email"]
        if email in accepted_emails:
            _log_debug("Row %s: email repeated within the batch. Skipping.", row_number)
            repeats.append((row_number, email))
            continue

        try:
            existing_id = find_existing_contact_id(email, session=session)
        except (SQLAlchemyError, UnicodeError) as exc:
            session.rollback()
            if has_app_context():
                current_app.logger.error(
                    "Row %s: duplicate check failed for %s: %s", row_number, mask_email(email), exc
                )
            check_error = ContactValidationError(
                field="email",
                message=f"Database error during duplicate check: {exc}",
                kind=ValidationErrorKind.OTHER,
            )
            report.add_validation_failure(row_number, [check_error], record)
            continue

        if existing_id is not None:
            _log_debug("Row %s: duplicate email found. Skipping.", row_number)
            report.add_duplicate(row_number, email)
            continue

        normalized = normalize_contact(
            record,
            organization_id=organization_id,
            batch_timestamp=batch_timestamp,
            id_factory=id_factory,
        )
        accepted_emails.add(email)
        candidates.append(
            ImportCandidate(
                row_number=row_number,
                contact=normalized,
                tag_names=merge_tag_names(_row_tag_names(record), shared_tags),
            )
        )
    return candidates, repeats


def import_contacts(
    rows: Sequence[Any],
    common_tags: Iterable[str] = (),
    *,
    organization_id: str,
    session: Session | None = None,
    clock: Callable[[], datetime] = utcnow,
    id_factory: Callable[[], uuid.UUID | str] = uuid.uuid4,
    batch_size: int | None = None,
    source: str = "api",
) -> ImportReport:
    """
    Validate, de-duplicate, normalize and store a batch of raw contact rows.

    Args:
        rows: Raw records in input order; non-mapping items are reported as
            structure errors.
        common_tags: Tag names applied to every inserted contact in addition
            to each row's own ``tags`` value.
        organization_id: Tenant that owns the inserted contacts and tags.
        session: SQLAlchemy session; defaults to ``db.session``.
        clock: Source of the single batch timestamp.
        id_factory: Source of contact identifiers.
        batch_size: Chunk size for progress logging; defaults to
            ``IMPORTER_BATCH_SIZE``.
        source: Metrics label naming the caller (``api`` or ``cli``).

    Returns:
        ImportReport describing every row's terminal outcome.
    """

    started = time.perf_counter()
    if session is None:
        session = db.session
    report = ImportReport()
    shared_tags = merge_tag_names((), common_tags)

    candidates, repeats = _prepare_candidates(
        rows,
        shared_tags,
        organization_id=organization_id,
        session=session,
        batch_timestamp=clock(),
        id_factory=id_factory,
        report=report,
    )
    _log_info(
        "Contact import prepared: %s valid for insertion, %s failed validation, %s skipped duplicates",
        len(candidates),
        report.validation_error_count,
        report.duplicate_skip_count + len(repeats),
    )

    stored_emails: set[str] = set()
    size = _resolve_batch_size(batch_size)
    total_batches = (len(candidates) + size - 1) // size
    for start in range(0, len(candidates), size):
        chunk = candidates[start : start + size]
        batch_number = start // size + 1
        inserted = 0
        for candidate in chunk:
            if _insert_candidate(session, candidate, report):
                stored_emails.add(candidate.contact.email)
                inserted += 1
        report.success_count += inserted
        _log_info("Batch %s/%s complete: %s/%s contacts inserted", batch_number, total_batches, inserted, len(chunk))

    # Repeats are only true duplicates when their first occurrence was stored
    for row_number, email in repeats:
        reason = DUPLICATE_EMAIL_REASON if email in stored_emails else REPEAT_OF_UNSTORED_REASON
        report.add_duplicate(row_number, email, reason)
    report.skipped_duplicates.sort(key=lambda item: item["row"])

    report.duration_seconds = time.perf_counter() - started
    record_row_outcome("inserted", report.success_count)
    record_row_outcome("validation_failed", report.validation_error_count)
    record_row_outcome("duplicate", report.duplicate_skip_count)
    record_row_outcome("storage_failed", len(report.database_errors))
    record_import(status=report.status.value, duration_seconds=report.duration_seconds, source=source)

    _log_info(
        "Contact import finished for organization %s: status=%s inserted=%s validation_errors=%s "
        "duplicates=%s database_errors=%s",
        organization_id,
        report.status.value,
        report.success_count,
        report.validation_error_count,
        report.duplicate_skip_count,
        len(report.database_errors),
    )
    return report
