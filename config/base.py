# config/base.py
import os
from datetime import timedelta


def _coerce_bool(value, default=False):
    """Convert environment-style truthy/falsey values to bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    value_str = str(value).strip().lower()
    if value_str in {"1", "true", "yes", "on"}:
        return True
    if value_str in {"0", "false", "no", "off"}:
        return False
    return default


def _coerce_int(value, default, *, minimum=None):
    """Parse an integer setting, falling back to ``default`` on bad input."""
    if value is None or str(value).strip() == "":
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    if minimum is not None and number < minimum:
        return minimum
    return number


class Config:
    # SECRET_KEY must be set via environment variable in production.
    _flask_env = os.environ.get("FLASK_ENV", "development")
    _is_testing = _flask_env == "testing"
    _is_production = _flask_env == "production"

    SECRET_KEY = os.environ.get("SECRET_KEY")

    if not SECRET_KEY and _is_production:
        raise ValueError(
            "SECRET_KEY environment variable is required in production. "
            'Generate with: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    if not SECRET_KEY and not _is_testing:
        import warnings

        warnings.warn(
            "SECRET_KEY not set. Using default for development only. "
            "Set SECRET_KEY environment variable before deploying.",
            UserWarning,
        )
        SECRET_KEY = "dev-secret-key-change-in-production"

    if not SECRET_KEY:
        SECRET_KEY = "test-secret-key-placeholder"

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # Contact importer configuration
    # Tenant used when no organization can be resolved from the session.
    IMPORTER_PLACEHOLDER_ORG_ID = os.environ.get("IMPORTER_PLACEHOLDER_ORG_ID", "org_test_alpha")
    IMPORTER_BATCH_SIZE = _coerce_int(os.environ.get("IMPORTER_BATCH_SIZE"), 50, minimum=1)
    IMPORTER_MAX_CONTACTS = _coerce_int(os.environ.get("IMPORTER_MAX_CONTACTS"), 10000, minimum=1)
    IMPORTER_DEBUG_LOGGING = _coerce_bool(os.environ.get("IMPORTER_DEBUG_LOGGING"), default=False)
    IMPORTER_METRICS_ENABLED = _coerce_bool(os.environ.get("IMPORTER_METRICS_ENABLED"), default=True)

    # Admin task relay cache
    TASK_RELAY_CACHE_TTL_SECONDS = _coerce_int(
        os.environ.get("TASK_RELAY_CACHE_TTL_SECONDS"), 300, minimum=1
    )
    TASK_RELAY_STORE_DIR = os.environ.get("TASK_RELAY_STORE_DIR") or None

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"


class DevelopmentConfig(Config):
    DEBUG = True
    IMPORTER_DEBUG_LOGGING = _coerce_bool(os.environ.get("IMPORTER_DEBUG_LOGGING"), default=True)
    _config_dir = os.path.dirname(os.path.abspath(__file__))
    _project_root = os.path.dirname(_config_dir)
    instance_path = os.path.join(_project_root, "instance")

    if not os.path.exists(instance_path):
        os.makedirs(instance_path, exist_ok=True)

    # SQLite URIs need forward slashes on every platform
    db_path = os.path.join(instance_path, "outreach_crm_dev.db").replace("\\", "/")
    db_uri = f"sqlite:///{db_path}"

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", db_uri)
    SQLALCHEMY_ECHO = _coerce_bool(os.environ.get("SQLALCHEMY_ECHO"), default=False)
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": 5,
            }
        }
    else:
        SQLALCHEMY_ENGINE_OPTIONS = {}


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get("SECRET_KEY", "test-secret-key-for-testing-only")
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ECHO = False
    IMPORTER_METRICS_ENABLED = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {
            "check_same_thread": False,
            "timeout": 5,
        }
    }


class ProductionConfig(Config):
    DEBUG = False
    uri = os.environ.get("DATABASE_URL")
    if uri and uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = uri
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
    SESSION_COOKIE_SECURE = True
