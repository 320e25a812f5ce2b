# crm_app/models/base.py
"""
Shared SQLAlchemy handle and base model with timestamp columns.
"""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    """Return a random UUID rendered as a string primary key."""
    return str(uuid.uuid4())


class BaseModel(db.Model):
    """Abstract base adding created/updated timestamps"""

    __abstract__ = True

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
