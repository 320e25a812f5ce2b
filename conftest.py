# conftest.py

import os

import pytest
from flask import g
from flask_login import FlaskLoginClient

# Set testing environment BEFORE importing app so app.py selects TestingConfig
os.environ["FLASK_ENV"] = "testing"

# Now import app and other modules after environment is set
from app import app as flask_app
from crm_app.models import Contact, ContactTagLink, Organization, Tag, User, db
from crm_app.services.task_relay_cache import init_task_relay_cache

PLACEHOLDER_ORG_ID = "org_test_alpha"


class IsolatedLoginClient(FlaskLoginClient):
    """Test client that drops Flask-Login's per-request user cache.

    The test fixtures keep an app context pushed, so Flask reuses it (and
    ``g``) for every request; without this, the first request's user would
    leak into later requests made by other clients.
    """

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


class FakeClock:
    """Manually advanced clock for TTL tests"""

    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(scope="function")
def app():
    """Create and configure a test Flask application"""
    flask_app.config.update(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key-for-testing-only",
            "MONITORING_ENABLED": False,
            "ENABLE_FILE_LOGGING": False,
            "ENABLE_CONSOLE_LOGGING": False,
            "IMPORTER_PLACEHOLDER_ORG_ID": PLACEHOLDER_ORG_ID,
            "IMPORTER_BATCH_SIZE": 50,
            "IMPORTER_MAX_CONTACTS": 10000,
            "IMPORTER_DEBUG_LOGGING": True,
            "IMPORTER_METRICS_ENABLED": False,
            "TASK_RELAY_CACHE_TTL_SECONDS": 300,
            "TASK_RELAY_STORE_DIR": None,
        }
    )
    flask_app.test_client_class = IsolatedLoginClient

    with flask_app.app_context():
        # Drop any existing tables to ensure clean state
        db.drop_all()
        db.create_all()
        # Fresh relay cache per test so cached tasks never leak between tests
        init_task_relay_cache(flask_app)
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create an anonymous test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def placeholder_organization(app):
    """Create the fallback tenant used when no user is logged in"""
    org = Organization(id=PLACEHOLDER_ORG_ID, name="Test Alpha", slug="test-alpha", is_active=True)
    db.session.add(org)
    db.session.commit()
    return org


@pytest.fixture
def test_organization(app):
    """Create a second tenant for isolation tests"""
    org = Organization(id="org_test_beta", name="Test Beta", slug="test-beta", is_active=True)
    db.session.add(org)
    db.session.commit()
    return org


@pytest.fixture
def test_user(app, test_organization):
    """Create a regular user belonging to ``test_organization``"""
    user = User(
        email="rep@example.com",
        name="Sales Rep",
        role="user",
        is_active=True,
        organization_id=test_organization.id,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_user(app, test_organization):
    """Create an admin user belonging to ``test_organization``"""
    user = User(
        email="admin@example.com",
        name="Admin User",
        role="admin",
        is_active=True,
        organization_id=test_organization.id,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def user_client(app, test_user):
    """Test client logged in as ``test_user``"""
    return app.test_client(user=test_user)


@pytest.fixture
def admin_client(app, admin_user):
    """Test client logged in as ``admin_user``"""
    return app.test_client(user=admin_user)


@pytest.fixture
def existing_contact(app, placeholder_organization):
    """A stored contact whose email later imports should treat as a duplicate"""
    contact = Contact(
        organization_id=placeholder_organization.id,
        email="existing@example.com",
        first_name="Existing",
        full_name="Existing Contact",
    )
    db.session.add(contact)
    db.session.commit()
    return contact


def tag_names_for(email):
    """Return sorted tag names linked to the contact with ``email``"""
    rows = (
        db.session.query(Tag.name)
        .join(ContactTagLink, ContactTagLink.tag_id == Tag.id)
        .join(Contact, Contact.id == ContactTagLink.contact_id)
        .filter(Contact.email == email)
        .all()
    )
    return sorted(row.name for row in rows)


@pytest.fixture
def contact_tag_names():
    return tag_names_for


def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
