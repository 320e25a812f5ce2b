# crm_app/models/__init__.py
"""
Database models package
"""

from .base import BaseModel, db
from .contact import Contact, ContactTagLink, Tag
from .organization import Organization
from .user import User

__all__ = [
    "db",
    "BaseModel",
    "User",
    "Organization",
    "Contact",
    "Tag",
    "ContactTagLink",
]
