# crm_app/routes/admin.py

"""
Admin task relay endpoints: automation pushes task lists, admins read them back.
"""

from flask import current_app, jsonify, request
from flask_login import current_user

from crm_app.services.task_relay_cache import get_task_relay_cache


def extract_task_payload(data):
    """
    Return ``(organization_name, tasks)`` from a pushed payload.

    Accepts ``{"organizationName": ..., "tasks": [...]}`` or a list of task
    objects carrying ``organizationName``/``clientName``; a first item with
    its own ``tasks`` list supplies the tasks. Missing parts come back as
    ``None``/``[]``.
    """
    if isinstance(data, dict):
        organization_name = data.get("organizationName")
        tasks = data.get("tasks")
        if organization_name and isinstance(tasks, list):
            return str(organization_name), tasks
        return (str(organization_name) if organization_name else None), []

    if isinstance(data, list) and data:
        first_item = data[0] if isinstance(data[0], dict) else {}
        organization_name = first_item.get("organizationName") or first_item.get("clientName")
        tasks = data
        if isinstance(first_item.get("tasks"), list):
            tasks = first_item["tasks"]
        return (str(organization_name) if organization_name else None), tasks

    return None, []


def register_admin_routes(app):
    """Register admin API routes"""

    @app.route("/api/admin/tasks-receive", methods=["POST"])
    def api_receive_tasks():
        """Accept a task list pushed by the automation workflow"""
        data = request.get_json(force=True, silent=True)
        if data is None:
            return jsonify({"error": "Invalid JSON", "details": "Request body is not valid JSON"}), 400

        organization_name, tasks = extract_task_payload(data)
        if not organization_name:
            current_app.logger.warning("Task relay push without an organization name")
            return (
                jsonify(
                    {
                        "error": "Missing organization name",
                        "details": "Could not extract organization name from the provided data",
                    }
                ),
                400,
            )
        if not tasks:
            current_app.logger.warning(f"Task relay push for {organization_name} without tasks")
            return (
                jsonify(
                    {
                        "error": "Missing tasks",
                        "details": "Could not extract tasks array from the provided data",
                    }
                ),
                400,
            )

        try:
            get_task_relay_cache(current_app).put(organization_name, tasks)
        except Exception as e:
            current_app.logger.error(f"Error storing relayed tasks: {str(e)}", exc_info=True)
            return jsonify({"error": "Failed to process request", "details": str(e)}), 500

        current_app.logger.info(f"Stored {len(tasks)} relayed tasks for {organization_name}")
        return jsonify(
            {
                "success": True,
                "message": f"Successfully received {len(tasks)} tasks for {organization_name}",
                "organization": organization_name,
                "count": len(tasks),
            }
        )

    @app.route("/api/admin/tasks-receive", methods=["GET"])
    def api_get_received_tasks():
        """Return relayed tasks for an organization (admins only)"""
        if not current_user.is_authenticated or not current_user.is_admin:
            current_app.logger.warning("Unauthorized task relay read attempt")
            return jsonify({"error": "Forbidden"}), 403

        organization_name = request.args.get("organizationName", "").strip()
        if not organization_name:
            return (
                jsonify(
                    {
                        "error": "Missing parameter",
                        "details": "organizationName parameter is required",
                    }
                ),
                400,
            )

        cache = get_task_relay_cache(current_app)
        try:
            tasks = cache.get(organization_name)
        except Exception as e:
            current_app.logger.error(f"Error retrieving relayed tasks: {str(e)}", exc_info=True)
            return jsonify({"error": "Failed to retrieve data", "details": str(e)}), 500

        if tasks is None:
            current_app.logger.debug(f"No relayed tasks cached for {organization_name}")
            return jsonify([])
        current_app.logger.debug(
            f"Serving {len(tasks)} relayed tasks for {organization_name} "
            f"(age {cache.age_seconds(organization_name) or 0:.0f}s)"
        )
        return jsonify(tasks)
