# crm_app/routes/__init__.py
"""
Application routes package
"""

from .admin import register_admin_routes
from .contacts import register_contact_routes
from .tags import register_tag_routes


def init_routes(app):
    """Initialize all application routes"""
    register_contact_routes(app)
    register_tag_routes(app)
    register_admin_routes(app)
