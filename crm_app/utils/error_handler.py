# crm_app/utils/error_handler.py
"""
JSON error responses for HTTP errors raised outside route handlers
"""

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException

from crm_app.models import db


def _error_response(error, status_code, message):
    body = {"success": False, "error": message, "status": status_code}
    description = getattr(error, "description", None)
    if description:
        body["details"] = description
    return jsonify(body), status_code


def register_error_handlers(app):
    """Register JSON handlers for 400/404/405/500"""

    @app.errorhandler(400)
    def bad_request_error(error):
        return _error_response(error, 400, "Bad request")

    @app.errorhandler(404)
    def not_found_error(error):
        return _error_response(error, 404, "Not found")

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return _error_response(error, 405, "Method not allowed")

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        original = getattr(error, "original_exception", None) or error
        current_app.logger.error(f"Unhandled server error: {str(original)}", exc_info=original)
        body = {"success": False, "error": "Internal server error", "status": 500}
        if current_app.debug and not isinstance(original, HTTPException):
            body["details"] = str(original)
        return jsonify(body), 500
