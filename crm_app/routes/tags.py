# crm_app/routes/tags.py

from flask import current_app, jsonify
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from crm_app.middleware.org_context import resolve_organization_id
from crm_app.models import Tag, db


def register_tag_routes(app):
    """Register tag API routes"""

    @app.route("/api/tags", methods=["GET"])
    def api_list_tags():
        """Return the current organization's tags ordered by name"""
        organization_id = resolve_organization_id()
        try:
            statement = (
                select(Tag.id, Tag.name)
                .where(Tag.organization_id == organization_id)
                .order_by(Tag.name)
            )
            rows = db.session.execute(statement).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error fetching tags for {organization_id}: {str(e)}", exc_info=True)
            return jsonify({"success": False, "error": "Failed to fetch tags"}), 500

        return jsonify({"success": True, "data": [{"id": row.id, "name": row.name} for row in rows]})
