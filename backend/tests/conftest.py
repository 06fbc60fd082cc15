"""
Pytest configuration and shared test helpers for backend tests.
"""
import os
import sys
from pathlib import Path

# Skip heavy server startup (MongoDB, scheduler) when running under pytest.
os.environ.setdefault("PYTEST_RUNNING", "1")

BACKEND_DIR = Path(__file__).resolve().parent.parent
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient
from server import app
from auth import build_token_claims, create_access_token


CLIENT_USER = {
    "user_id": "user-client-1",
    "email": "client@example.com",
    "display_name": "Client One",
    "roles": ["client"],
    "active_role": "client",
    "is_freelancer": False,
    "freelancer_status": None,
    "bio": "",
    "status": "ACTIVE",
}

ADMIN_USER = {
    "user_id": "user-admin-1",
    "email": "admin@example.com",
    "display_name": "Admin",
    "roles": ["admin", "client"],
    "active_role": "admin",
    "is_freelancer": False,
    "freelancer_status": None,
    "status": "ACTIVE",
}


def auth_headers(user: dict) -> dict:
    return {"Authorization": f"Bearer {create_access_token(build_token_claims(user))}"}


def make_cursor(items):
    """Motor-like cursor supporting .sort()/.limit() chaining and to_list()."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(items))
    return cursor


def make_db():
    """MagicMock database whose collections expose awaitable Motor methods."""
    db = MagicMock()
    for name in ("users", "freelancer_profiles", "skills", "audit_logs"):
        collection = getattr(db, name)
        collection.find_one = AsyncMock(return_value=None)
        collection.insert_one = AsyncMock()
        collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1, matched_count=1, upserted_id=None))
        collection.update_many = AsyncMock(return_value=MagicMock(modified_count=0))
        collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=0))
        collection.distinct = AsyncMock(return_value=[])
        collection.count_documents = AsyncMock(return_value=0)
        collection.find = MagicMock(return_value=make_cursor([]))
    return db


@pytest.fixture
def client():
    """Return a TestClient for the main FastAPI app (server:app). Use for unit-style API tests."""
    return TestClient(app)


@pytest.fixture
def mock_db():
    return make_db()


@pytest.fixture(autouse=True)
def reset_wizard_sessions():
    from services.freelancer_wizard import wizard_sessions
    wizard_sessions._sessions.clear()
    yield
    wizard_sessions._sessions.clear()
