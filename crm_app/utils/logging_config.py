# crm_app/utils/logging_config.py
"""
Application logging setup.

``setup_logging(app)`` configures ``app.logger`` from the monitoring config:
``LOG_LEVEL``, ``LOG_FORMAT`` (``json`` or ``text``), a rotating file in
``LOG_DIR`` and an optional console handler. Safe to call repeatedly; handlers
installed by a previous call are replaced.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler

# Extra attributes copied into JSON log lines when present on the record
_EXTRA_FIELDS = ("organization_id", "row", "status", "duration_ms", "request_path")


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter for production use"""

    def __init__(self, app_name=None, app_version=None):
        super().__init__()
        self.app_name = app_name
        self.app_version = app_version

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if self.app_name:
            log_entry["app"] = self.app_name
        if self.app_version:
            log_entry["version"] = self.app_version

        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable log formatter for development"""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def _build_formatter(app):
    if str(app.config.get("LOG_FORMAT", "text")).lower() == "json":
        return JSONFormatter(app.config.get("APP_NAME"), app.config.get("APP_VERSION"))
    return TextFormatter()


def setup_logging(app):
    """Configure ``app.logger`` handlers and level from app config"""
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = _build_formatter(app)

    logger = app.logger
    for handler in list(logger.handlers):
        if getattr(handler, "_crm_managed", False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)

    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(level)
        console_handler._crm_managed = True
        logger.addHandler(console_handler)

    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_dir = app.config.get("LOG_DIR", "logs")
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, app.config.get("LOG_FILE_NAME", "outreach_crm.log")),
                maxBytes=int(app.config.get("LOG_FILE_MAX_BYTES", 10485760)),
                backupCount=int(app.config.get("LOG_FILE_BACKUP_COUNT", 10)),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(f"File logging disabled; could not open log file in {log_dir}: {e}")
        else:
            file_handler.setFormatter(formatter)
            file_handler.setLevel(level)
            file_handler._crm_managed = True
            logger.addHandler(file_handler)

    # Quiet down noisy libraries
    logging.getLogger("werkzeug").setLevel(logging.WARNING if level > logging.DEBUG else logging.INFO)

    logger.info(
        "Logging configured: level=%s, format=%s",
        level_name,
        app.config.get("LOG_FORMAT", "text"),
    )
    return logger
