# crm_app/middleware/org_context.py

from flask import current_app, g, request
from flask_login import current_user


def resolve_organization_id():
    """Return the tenant for the current request, falling back to the placeholder org"""
    organization_id = getattr(g, "organization_id", None)
    if organization_id:
        return organization_id
    return current_app.config["IMPORTER_PLACEHOLDER_ORG_ID"]


def init_org_context_middleware(app):
    """Initialize organization context middleware"""

    @app.before_request
    def set_organization_context():
        """Set the current organization from the logged-in user, else the placeholder tenant"""
        g.organization_id = None
        g.organization_is_placeholder = False

        # Skip for static files and operational endpoints
        if request.endpoint in ("static", "health_check", "metrics"):
            return

        if current_user.is_authenticated and current_user.organization_id:
            organization = current_user.organization
            if organization is not None and not organization.is_active:
                current_app.logger.warning(
                    f"Attempted access to inactive organization: {organization.id}"
                )
            else:
                g.organization_id = current_user.organization_id
                return

        g.organization_id = current_app.config["IMPORTER_PLACEHOLDER_ORG_ID"]
        g.organization_is_placeholder = True
