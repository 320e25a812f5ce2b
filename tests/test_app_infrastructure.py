import json
import logging
from unittest.mock import patch

from flask import g
from sqlalchemy.exc import OperationalError

from crm_app.middleware.org_context import resolve_organization_id
from crm_app.utils.logging_config import JSONFormatter, setup_logging


def test_health_endpoint_reports_healthy(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json()["status"] == "healthy"


def test_health_endpoint_reports_database_failure(client):
    with patch(
        "crm_app.utils.monitoring.db.session.execute",
        side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")),
    ):
        response = client.get("/health")

    assert response.status_code == 503
    assert response.get_json()["status"] == "unhealthy"


def test_readiness_and_liveness_probes(client):
    assert client.get("/health/ready").get_json() == {"status": "ready"}
    assert client.get("/health/live").get_json() == {"status": "alive"}


def test_metrics_endpoint_exposes_importer_metrics(app, client, placeholder_organization):
    app.config["IMPORTER_METRICS_ENABLED"] = True
    client.post("/api/contacts/bulk-create", json={"contacts": [{"email": "metrics@example.org"}]})

    response = client.get("/metrics")

    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "contact_import_rows_total" in body
    assert "contact_imports_total" in body


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.get_json()["error"] == "Not found"


def test_wrong_method_returns_json_405(client):
    response = client.get("/api/contacts/bulk-create")

    assert response.status_code == 405
    assert response.get_json()["success"] is False


def test_anonymous_requests_resolve_placeholder_tenant(app):
    with app.test_request_context("/api/tags"):
        app.preprocess_request()
        assert g.organization_id == "org_test_alpha"
        assert g.organization_is_placeholder is True
        assert resolve_organization_id() == "org_test_alpha"


def test_logged_in_user_resolves_their_tenant(user_client, test_user):
    with user_client:
        user_client.get("/api/tags")
        assert g.organization_id == test_user.organization_id
        assert g.organization_is_placeholder is False


def test_json_formatter_emits_structured_lines():
    record = logging.LogRecord("app", logging.INFO, __file__, 10, "Imported %s contacts", (3,), None)
    record.organization_id = "org_test_alpha"

    payload = json.loads(JSONFormatter(app_name="Outreach CRM").format(record))

    assert payload["message"] == "Imported 3 contacts"
    assert payload["level"] == "INFO"
    assert payload["app"] == "Outreach CRM"
    assert payload["organization_id"] == "org_test_alpha"


def test_setup_logging_writes_rotating_file(app, tmp_path):
    app.config.update(
        {
            "ENABLE_FILE_LOGGING": True,
            "LOG_DIR": str(tmp_path),
            "LOG_FORMAT": "json",
            "LOG_LEVEL": "INFO",
        }
    )
    try:
        setup_logging(app)
        app.logger.info("file logging works")
        for handler in app.logger.handlers:
            handler.flush()

        log_file = tmp_path / app.config["LOG_FILE_NAME"]
        lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        assert any(line["message"] == "file logging works" for line in lines)
    finally:
        app.config.update({"ENABLE_FILE_LOGGING": False, "LOG_FORMAT": "text", "LOG_LEVEL": "WARNING"})
        setup_logging(app)
