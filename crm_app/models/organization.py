# crm_app/models/organization.py

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .base import BaseModel, db


class Organization(BaseModel):
    """Tenant owning contacts, tags and users"""

    __tablename__ = "organizations"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    slug = db.Column(db.String(100), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    settings = db.Column(db.Text, nullable=True)  # JSON string for additional settings

    # Relationships
    users = db.relationship("User", back_populates="organization")
    tags = db.relationship("Tag", back_populates="organization", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Organization {self.name}>"

    @staticmethod
    def find_by_id(org_id):
        """Find organization by ID with error handling"""
        try:
            return db.session.get(Organization, org_id)
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding organization by id {org_id}: {str(e)}")
            return None

    @staticmethod
    def ensure_exists(org_id, name=None):
        """Return the organization with ``org_id``, creating it when missing"""
        organization = db.session.get(Organization, org_id)
        if organization is not None:
            return organization

        organization = Organization(
            id=org_id,
            name=name or org_id,
            slug=org_id.lower().replace("_", "-"),
            is_active=True,
        )
        db.session.add(organization)
        try:
            db.session.commit()
        except IntegrityError:
            # Another process created it first
            db.session.rollback()
            return db.session.get(Organization, org_id)
        current_app.logger.info(f"Created organization {org_id}")
        return organization
