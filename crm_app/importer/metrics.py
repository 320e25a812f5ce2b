"""Prometheus metrics helpers for the contact importer."""

from __future__ import annotations

from typing import Literal

from flask import current_app, has_app_context
from prometheus_client import Counter, Histogram

RowOutcome = Literal["inserted", "validation_failed", "duplicate", "storage_failed"]

_contact_rows_counter = Counter(
    "contact_import_rows_total",
    "Contact rows processed by the bulk importer, by terminal outcome.",
    ["outcome"],
)
_contact_imports_counter = Counter(
    "contact_imports_total",
    "Bulk contact imports by overall status.",
    ["status", "source"],
)
_contact_import_duration = Histogram(
    "contact_import_duration_seconds",
    "Duration of a bulk contact import in seconds.",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, 300),
)
_tag_upserts_counter = Counter(
    "contact_import_tag_links_total",
    "Tag links written by the bulk importer.",
)


def _metrics_enabled() -> bool:
    if not has_app_context():
        return True
    return bool(current_app.config.get("IMPORTER_METRICS_ENABLED", True))


def record_row_outcome(outcome: RowOutcome, count: int = 1) -> None:
    """Increment the per-row outcome counter."""

    if count <= 0 or not _metrics_enabled():
        return
    _contact_rows_counter.labels(outcome=outcome).inc(count)


def record_tag_links(count: int) -> None:
    if count <= 0 or not _metrics_enabled():
        return
    _tag_upserts_counter.inc(count)


def record_import(*, status: str, duration_seconds: float, source: str = "api") -> None:
    """Capture the overall status and duration of one import batch."""

    if not _metrics_enabled():
        return
    _contact_imports_counter.labels(status=status, source=source).inc()
    _contact_import_duration.observe(max(duration_seconds, 0.0))
