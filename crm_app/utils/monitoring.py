# crm_app/utils/monitoring.py
"""
Health checks and Prometheus exposition
"""

import time

from flask import Response, current_app, g, jsonify, request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from crm_app.models import db

_http_requests_counter = Counter(
    "http_requests_total",
    "HTTP requests handled by the application.",
    ["method", "endpoint", "status"],
)
_http_request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "endpoint"],
)


class HealthChecker:
    """Liveness and readiness probes backed by a database ping"""

    def __init__(self, app=None):
        self.app = app

    def _app_info(self):
        config = self.app.config if self.app is not None else current_app.config
        return {"app": config.get("APP_NAME"), "version": config.get("APP_VERSION")}

    def _ping_database(self):
        db.session.execute(text("SELECT 1"))

    def basic_health_check(self):
        """Return (response, status) describing overall health"""
        try:
            self._ping_database()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Health check database error: {str(e)}")
            return jsonify({"status": "unhealthy", "error": "database unavailable", **self._app_info()}), 503
        except Exception as e:
            current_app.logger.error(f"Health check failed: {str(e)}", exc_info=True)
            return jsonify({"status": "unhealthy", "error": str(e), **self._app_info()}), 503
        return jsonify({"status": "healthy", **self._app_info()}), 200

    def readiness_check(self):
        try:
            self._ping_database()
        except SQLAlchemyError as e:
            db.session.rollback()
            return jsonify({"status": "not_ready", "error": str(e)}), 503
        return jsonify({"status": "ready"}), 200

    def liveness_check(self):
        return jsonify({"status": "alive"}), 200


def init_monitoring(app):
    """Register health endpoints, the metrics endpoint and request instrumentation"""
    health_checker = HealthChecker(app)
    app.extensions["health_checker"] = health_checker
    health_path = app.config.get("HEALTH_CHECK_ENDPOINT", "/health")
    metrics_path = app.config.get("METRICS_ENDPOINT", "/metrics")

    @app.route(health_path, methods=["GET"])
    def health_check():
        return health_checker.basic_health_check()

    @app.route(f"{health_path}/ready", methods=["GET"])
    def health_ready():
        return health_checker.readiness_check()

    @app.route(f"{health_path}/live", methods=["GET"])
    def health_live():
        return health_checker.liveness_check()

    @app.route(metrics_path, methods=["GET"])
    def metrics():
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    if not app.config.get("MONITORING_ENABLED", False):
        return

    @app.before_request
    def start_request_timer():
        g.request_started_at = time.perf_counter()

    @app.after_request
    def record_request_metrics(response):
        started = getattr(g, "request_started_at", None)
        endpoint = request.endpoint or "unknown"
        if started is not None:
            _http_request_duration.labels(method=request.method, endpoint=endpoint).observe(
                time.perf_counter() - started
            )
        _http_requests_counter.labels(
            method=request.method, endpoint=endpoint, status=response.status_code
        ).inc()
        return response
