"""
Global duplicate detection for imported contacts.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from crm_app.models import Contact, db

DUPLICATE_EMAIL_REASON = "Duplicate email exists globally"


def find_existing_contact_id(email: str, *, session: Session | None = None) -> str | None:
    """
    Return the id of any stored contact using ``email``, across all organizations.

    Matching is exact; storage errors propagate as ``SQLAlchemyError`` so the
    caller can report them against the row being checked.
    """

    if not email:
        return None
    if session is None:
        session = db.session
    statement = select(Contact.id).where(Contact.email == email).limit(1)
    return session.execute(statement).scalar()
