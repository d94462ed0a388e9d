# conftest.py

import os
import tempfile
import uuid

import pytest

# Set testing environment BEFORE importing app so the module-level app uses TestingConfig
os.environ["FLASK_ENV"] = "testing"

# Now import app and other modules after environment is set
from app import create_app  # noqa: E402
from crm_app.models import Contact, ContactVenue, Operator, Venue, db  # noqa: E402


@pytest.fixture(scope="function")
def app(tmp_path):
    """Create and configure a test Flask application"""
    # A file database (not :memory:) so Celery eager tasks, which open their own
    # app context and session, see rows committed by the test.
    db_fd, temp_db = tempfile.mkstemp(suffix=f"_{uuid.uuid4().hex[:8]}.db")

    try:
        flask_app = create_app(
            "testing",
            overrides={
                "TESTING": True,
                "SQLALCHEMY_DATABASE_URI": f"sqlite:///{temp_db}",
                "SECRET_KEY": "test-secret-key-for-testing-only",
                "ENABLE_FILE_LOGGING": False,
                "ENABLE_CONSOLE_LOGGING": True,
                "LOG_LEVEL": "DEBUG",
                "IMPORTER_ENABLED": True,
                "IMPORTER_KINDS": ("venues", "contacts"),
                "IMPORTER_WORKER_ENABLED": False,
                "IMPORTER_UPLOAD_DIR": str(tmp_path / "uploads"),
                "CELERY_SQLITE_PATH": str(tmp_path / "celery.sqlite"),
            },
        )

        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            yield flask_app
            db.session.remove()
            db.drop_all()
            db.engine.dispose()
    finally:
        # Always close and remove the temporary database file, even on error
        try:
            os.close(db_fd)
        except OSError:
            pass
        for suffix in ("", "-wal", "-shm"):
            try:
                if os.path.exists(temp_db + suffix):
                    os.unlink(temp_db + suffix)
            except OSError:
                pass


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


@pytest.fixture
def test_operator():
    """An operator venues can reference by name"""
    operator = Operator(name="Live Nation", website="https://www.livenation.com")
    db.session.add(operator)
    db.session.commit()
    return operator


@pytest.fixture
def test_venue(test_operator):
    """A venue contacts can reference by name"""
    venue = Venue(
        name="Madison Square Garden",
        address="4 Pennsylvania Plaza",
        city="New York",
        state="NY",
        capacity=20000,
        operator_id=test_operator.id,
    )
    db.session.add(venue)
    db.session.commit()
    return venue


@pytest.fixture
def test_contact(test_venue):
    """A contact linked to ``test_venue``"""
    contact = Contact(name="John Smith", email="john@example.com", avatar="JS", is_primary=True)
    db.session.add(contact)
    db.session.flush()
    db.session.add(ContactVenue(contact_id=contact.id, venue_id=test_venue.id))
    db.session.commit()
    return contact
