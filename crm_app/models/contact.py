# crm_app/models/contact.py
"""
Contact, Tag and ContactTagLink models for the outbound-sales CRM.

Contacts are globally unique by email. Tags are scoped per organization and
unique by (organization_id, name); the link table is keyed by the
(contact_id, tag_id) pair so a duplicate link is a conflict, never a second row.
"""

from sqlalchemy import Index

from .base import BaseModel, db, new_uuid


class Contact(BaseModel):
    """Prospect record imported from CSV uploads or created in the UI"""

    __tablename__ = "contacts"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    organization_id = db.Column(db.String(64), db.ForeignKey("organizations.id"), nullable=False, index=True)

    # Identity
    email = db.Column(db.String(320), nullable=False, unique=True)
    email_status = db.Column(db.String(50), nullable=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    full_name = db.Column(db.String(255), nullable=True)
    title = db.Column(db.String(200), nullable=True)
    headline = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    photo_url = db.Column(db.Text, nullable=True)
    lead_status = db.Column(db.String(100), nullable=True)

    # Location
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    country = db.Column(db.String(100), nullable=True)

    # Company
    current_company_name = db.Column(db.String(255), nullable=True)
    current_company_id = db.Column(db.String(100), nullable=True)
    company_website_url = db.Column(db.Text, nullable=True)
    company_linkedin_url = db.Column(db.Text, nullable=True)

    # Social profiles
    linkedin_url = db.Column(db.Text, nullable=True)
    twitter_url = db.Column(db.Text, nullable=True)
    facebook_url = db.Column(db.Text, nullable=True)
    github_url = db.Column(db.Text, nullable=True)
    linkedin_profile_photo = db.Column(db.Text, nullable=True)

    # JSON documents stored as text
    employment_history = db.Column(db.Text, nullable=False, default="{}")
    phone_numbers = db.Column(db.Text, nullable=False, default="{}")
    contact_emails = db.Column(db.Text, nullable=False, default="{}")
    additional_data = db.Column(db.Text, nullable=False, default="{}")

    # Research and messaging
    prospect_research = db.Column(db.Text, nullable=True)
    company_research = db.Column(db.Text, nullable=True)
    additional_research = db.Column(db.Text, nullable=True)
    all_employees = db.Column(db.Text, nullable=True)
    linkedin_posts = db.Column(db.Text, nullable=True)
    mutual_connections = db.Column(db.Text, nullable=True)
    seo_description = db.Column(db.Text, nullable=True)
    date_of_research = db.Column(db.DateTime(timezone=True), nullable=True)
    last_activity_at = db.Column(db.DateTime(timezone=True), nullable=True)
    previous_message_copy = db.Column(db.Text, nullable=True)
    previous_message_subject_line = db.Column(db.Text, nullable=True)
    previous_message_id = db.Column(db.String(255), nullable=True)
    thread_id = db.Column(db.String(255), nullable=True)
    initial_linkedin_message_copy = db.Column(db.Text, nullable=True)
    email_sender = db.Column(db.String(255), nullable=True)
    original_outbound_rep_name = db.Column(db.String(200), nullable=True)
    outbound_rep_name = db.Column(db.String(200), nullable=True)
    provider_id = db.Column(db.String(255), nullable=True)
    current_scenario = db.Column(db.String(255), nullable=True)
    scenario_name = db.Column(db.String(255), nullable=True)

    # Relationships
    organization = db.relationship("Organization", foreign_keys=[organization_id])
    tag_links = db.relationship("ContactTagLink", back_populates="contact", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_contact_org_name", "organization_id", "last_name", "first_name"),)

    def __repr__(self):
        return f"<Contact {self.full_name or self.email}>"

    def get_tag_names(self):
        """Return the sorted names of tags linked to this contact"""
        return sorted(link.tag.name for link in self.tag_links)


class Tag(BaseModel):
    """Organization-scoped label shared by every contact that uses the name"""

    __tablename__ = "tags"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    organization_id = db.Column(db.String(64), db.ForeignKey("organizations.id"), nullable=False)
    name = db.Column(db.String(100), nullable=False)

    # Relationships
    organization = db.relationship("Organization", back_populates="tags")
    contact_links = db.relationship("ContactTagLink", back_populates="tag", cascade="all, delete-orphan")

    __table_args__ = (db.UniqueConstraint("organization_id", "name", name="_tag_org_name_uc"),)

    def __repr__(self):
        return f"<Tag {self.name}>"


class ContactTagLink(db.Model):
    """Association between a contact and a tag"""

    __tablename__ = "contact_tags"

    contact_id = db.Column(db.String(36), db.ForeignKey("contacts.id", ondelete="CASCADE"), primary_key=True)
    tag_id = db.Column(db.String(36), db.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)

    # Relationships
    contact = db.relationship("Contact", back_populates="tag_links")
    tag = db.relationship("Tag", back_populates="contact_links")

    __table_args__ = (Index("idx_contact_tags_tag", "tag_id"),)

    def __repr__(self):
        return f"<ContactTagLink contact={self.contact_id} tag={self.tag_id}>"
