# crm_app/routes/contacts.py

"""
Bulk contact import API
"""

from flask import current_app, jsonify, request

from crm_app.importer import ImportRequestError, import_contacts
from crm_app.middleware.org_context import resolve_organization_id
from crm_app.models import db

PARSE_ERROR_MESSAGE = "Invalid request format: Could not parse JSON body."
CONTACTS_REQUIRED_MESSAGE = "Invalid request: contacts array is required and must not be empty"
COMMON_TAGS_MESSAGE = "Invalid request: commonTags must be an array of strings"


def parse_bulk_create_request(max_contacts=None):
    """
    Extract ``(contacts, common_tags)`` from the current request body.

    Raises ImportRequestError for any request-shape problem; nothing here
    touches the database.
    """
    body = request.get_json(force=True, silent=True)
    if body is None:
        raise ImportRequestError(PARSE_ERROR_MESSAGE)

    contacts = body.get("contacts") if isinstance(body, dict) else None
    if not isinstance(contacts, list) or not contacts:
        raise ImportRequestError(CONTACTS_REQUIRED_MESSAGE)

    if max_contacts and len(contacts) > max_contacts:
        raise ImportRequestError(
            f"Invalid request: a single import accepts at most {max_contacts} contacts"
        )

    common_tags = body.get("commonTags")
    if common_tags is None:
        common_tags = []
    elif not isinstance(common_tags, list):
        raise ImportRequestError(COMMON_TAGS_MESSAGE)

    return contacts, [tag for tag in common_tags if isinstance(tag, str)]


def _unhandled_error_body(error):
    return {
        "message": "Internal server error occurred.",
        "details": str(error) or "Unknown error",
        "success": False,
        "successCount": 0,
        "validationErrorCount": 0,
        "duplicateSkipCount": 0,
        "validationErrors": [],
        "skippedDuplicates": [],
        "databaseErrors": [{"message": f"Unhandled server error: {error}"}],
    }


def register_contact_routes(app):
    """Register contact import routes"""

    @app.route("/api/contacts/bulk-create", methods=["POST"])
    def api_bulk_create_contacts():
        """
        Import a batch of contacts for the current organization.

        Returns 200 when every row was stored, 207 when rows were rejected
        for validation or duplicate reasons only, and 500 when any contact
        failed to store.
        """
        try:
            contacts, common_tags = parse_bulk_create_request(
                current_app.config.get("IMPORTER_MAX_CONTACTS")
            )
        except ImportRequestError as e:
            current_app.logger.warning(f"Rejected bulk contact import: {e.message}")
            return jsonify({"message": e.message}), e.status_code

        try:
            organization_id = resolve_organization_id()
            current_app.logger.info(
                f"Bulk contact import requested for organization {organization_id}: "
                f"{len(contacts)} contacts, {len(common_tags)} common tags"
            )
            report = import_contacts(contacts, common_tags, organization_id=organization_id)
            return jsonify(report.to_dict()), report.http_status

        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Unhandled error in bulk contact import: {str(e)}", exc_info=True)
            return jsonify(_unhandled_error_body(e)), 500
