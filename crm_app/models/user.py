# crm_app/models/user.py

from flask_login import UserMixin

from .base import BaseModel, db


class User(UserMixin, BaseModel):
    """Application user; the session's tenant comes from ``organization_id``"""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=True)
    role = db.Column(db.String(50), nullable=False, default="user")
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    organization_id = db.Column(db.String(64), db.ForeignKey("organizations.id"), nullable=True)

    organization = db.relationship("Organization", back_populates="users")

    def __repr__(self):
        return f"<User {self.email}>"

    @property
    def is_admin(self):
        return self.role == "admin"
