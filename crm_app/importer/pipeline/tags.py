"""
Tag reconciliation for imported contacts.

Tags are shared per organization, so concurrent imports may race to create
the same name. Every mutation here is a single ``INSERT ... ON CONFLICT``
statement; there is no read-then-write path.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from flask import current_app, has_app_context
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from crm_app.models import ContactTagLink, Tag

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class TagReconciliationError(RuntimeError):
    """Raised when a tag cannot be upserted or linked to its contact."""


def parse_tag_string(raw: object) -> list[str]:
    """Split a comma-separated tag cell into trimmed, non-empty names."""
    if not isinstance(raw, str):
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def merge_tag_names(row_tags: Iterable[str], common_tags: Iterable[str]) -> tuple[str, ...]:
    """
    Union of row-level and batch-level tag names.

    Matching is exact and case-sensitive; blanks are dropped and duplicates
    collapse to their first occurrence.
    """

    merged: dict[str, None] = {}
    for name in (*row_tags, *common_tags):
        if not isinstance(name, str):
            continue
        token = name.strip()
        if token:
            merged.setdefault(token, None)
    return tuple(merged)


def _insert_for(session: Session, table):
    dialect_name = session.get_bind(mapper=Tag).dialect.name
    insert_factory = _DIALECT_INSERTS.get(dialect_name)
    if insert_factory is None:
        raise TagReconciliationError(f"Tag upserts are not supported on the {dialect_name} dialect")
    return insert_factory(table)


def upsert_tag(session: Session, *, organization_id: str, name: str) -> str:
    """
    Insert the tag if absent and return its id; reuse the existing row on conflict.

    The no-op ``DO UPDATE`` makes ``RETURNING`` yield the existing id when the
    (organization_id, name) pair is already taken.
    """

    table = Tag.__table__
    statement = _insert_for(session, table).values(organization_id=organization_id, name=name)
    statement = statement.on_conflict_do_update(
        index_elements=[table.c.organization_id, table.c.name],
        set_={"name": statement.excluded.name},
    ).returning(table.c.id)

    tag_id = session.execute(statement).scalar()
    if not tag_id:
        raise TagReconciliationError(f"Failed to upsert or retrieve id for tag: {name}")
    return tag_id


def link_tags(session: Session, *, contact_id: str, tag_ids: Sequence[str]) -> None:
    """Link tags to a contact; existing links are left untouched."""
    if not tag_ids:
        return
    table = ContactTagLink.__table__
    statement = _insert_for(session, table).values(
        [{"contact_id": contact_id, "tag_id": tag_id} for tag_id in tag_ids]
    )
    session.execute(statement.on_conflict_do_nothing(index_elements=[table.c.contact_id, table.c.tag_id]))


def reconcile_contact_tags(
    session: Session,
    *,
    contact_id: str,
    organization_id: str,
    tag_names: Iterable[str],
) -> list[str]:
    """
    Upsert every tag name for the organization and link them to the contact.

    Runs inside the caller's transaction; any failure propagates so the
    contact insert is rolled back together with its tags.

    Returns:
        Ids of the tags linked to the contact, in input order.
    """

    tag_ids: list[str] = []
    for name in tag_names:
        tag_id = upsert_tag(session, organization_id=organization_id, name=name)
        if tag_id not in tag_ids:
            tag_ids.append(tag_id)

    link_tags(session, contact_id=contact_id, tag_ids=tag_ids)
    if tag_ids and has_app_context():
        current_app.logger.debug("Contact %s linked to %s tags", contact_id, len(tag_ids))
    return tag_ids
