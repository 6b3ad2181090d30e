"""
Shared fixtures: an in-memory MongoDB (mongomock) wired into the app through
the ``get_db`` dependency, uploads redirected to a temporary directory.
"""
import uuid

import mongomock
import pytest
from fastapi.testclient import TestClient

import config
from auth import create_access_token, ensure_admin_user
from contact import contact_limiter
from database import ensure_indexes, get_db
from main import app

# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def db():
    client = mongomock.MongoClient()
    database = client[f"portfolio_test_{uuid.uuid4().hex}"]
    ensure_indexes(database)
    ensure_admin_user(database)
    yield database
    client.drop_database(database.name)


@pytest.fixture(autouse=True)
def upload_root(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "UPLOAD_ROOT", str(tmp_path))
    return tmp_path


@pytest.fixture(autouse=True)
def fresh_rate_limits():
    contact_limiter.reset()
    yield
    contact_limiter.reset()


# =============================================================================
# HTTP FIXTURES
# =============================================================================

@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = create_access_token({"sub": config.ADMIN_USERNAME, "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# HELPERS
# =============================================================================

def make_project(db, locale, slug, original_id, **extra):
    """Insert a project record directly, bypassing the API."""
    record = {
        "id": slug,
        "originalId": original_id,
        "locale": locale,
        "title": extra.pop("title", slug),
        "description": "",
        "technologies": [],
        "images": [],
        "status": True,
        "order": 0,
        "seo": {},
    }
    record.update(extra)
    db["projects"].insert_one(record)
    return record
