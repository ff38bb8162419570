"""
Shared pytest fixtures for the SecureListify test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_user / owner / collaborator / outsider / admin: persisted accounts
    - auth_headers: callable minting a real bearer token for a user
    - linux_template: public "Linux Server Hardening" template (High + Critical item)
"""

import pytest

from securelistify import create_app
from securelistify.models import db as _db
from securelistify.services import template_service
from securelistify.services.jwt_service import generate_access_token
from securelistify.services.user_service import create_user


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Users ────────────────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Factory: make_user("Name", "email", role="user") → committed User."""
    def _make(name, email, role="user", password="correct-horse-1"):
        user = create_user(name, email, password, role=role)
        _db.session.commit()
        return user
    return _make


@pytest.fixture()
def owner(make_user):
    return make_user("Olivia Owner", "owner@example.com")


@pytest.fixture()
def collaborator(make_user):
    return make_user("Carl Collaborator", "carl@example.com")


@pytest.fixture()
def outsider(make_user):
    return make_user("Oscar Outsider", "oscar@example.com")


@pytest.fixture()
def admin(make_user):
    return make_user("Ada Admin", "admin@example.com", role="admin")


@pytest.fixture()
def auth_headers(app):
    """auth_headers(user) → {"Authorization": "Bearer <jwt>"}"""
    def _headers(user):
        token = generate_access_token(user.id, user.role)
        return {"Authorization": f"Bearer {token}"}
    return _headers


# ── Templates ────────────────────────────────────────────────────────────


def _item_payload(title, risk_rating="Medium", category="General", **extra):
    item = {
        "title": title,
        "description": f"{title} description",
        "risk_rating": risk_rating,
        "reference_url": "https://www.cisecurity.org/benchmarks",
        "category": category,
    }
    item.update(extra)
    return item


@pytest.fixture()
def item_payload():
    """item_payload("Title", "High", "Category", tags=[...]) → valid item dict."""
    return _item_payload


@pytest.fixture()
def linux_template(owner):
    """Public template with two items: one High, one Critical."""
    return template_service.create_template(owner, {
        "name": "Linux Server Hardening",
        "description": "Baseline controls",
        "system_type": "Linux Server",
        "is_public": True,
        "items": [
            _item_payload("Disable root SSH login", "High", "SSH",
                          tags=["ssh"], compliance_frameworks=["CIS"]),
            _item_payload("Apply security updates", "Critical", "Patching"),
        ],
    })
