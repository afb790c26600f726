"""
Pytest fixtures for the storefront API tests.

Collections run on mongomock, the mailer is mocked, and the FastAPI app gets
both through dependency overrides, so no MongoDB server or email provider is
needed.
"""

import os
import tempfile

# Must be set before storefront.config.settings is imported.
os.environ["HASH_ROUNDS"] = "4"
os.environ["APP_ENV"] = "test"
os.environ["RESEND_API_KEY"] = ""
os.environ["SECRET_KEY"] = "test-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="storefront-uploads-")

import re
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import mongomock
import pytest
from fastapi.testclient import TestClient

from storefront.api.main import app
from storefront.db.collections import Collections, UserRoles
from storefront.db.mongo_client import get_collections
from storefront.features.user.auth.security import create_access_token, hash_password
from storefront.shared.emails import Mailer, get_mailer

DEFAULT_PASSWORD = "Str0ng#Password"


@pytest.fixture
def database():
    """A fresh in-memory database per test."""
    client = mongomock.MongoClient(tz_aware=True)
    yield client["storefront_test"]
    client.close()


@pytest.fixture
def collections(database):
    registry = Collections(database)
    registry.ensure_indexes()
    return registry


@pytest.fixture
def mailer():
    """Mailer whose send() records calls instead of hitting Resend."""
    instance = Mailer(api_key="")
    instance.send = AsyncMock(return_value=None)
    return instance


@pytest.fixture
def client(collections, mailer):
    app.dependency_overrides[get_collections] = lambda: collections
    app.dependency_overrides[get_mailer] = lambda: mailer
    # no context manager: startup would connect to a real MongoDB
    test_client = TestClient(app, raise_server_exceptions=False)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(collections):
    """Inserts a user directly, bypassing the API. Returns the stored document."""

    def _make(email="user@example.com", role=UserRoles.USER, password=DEFAULT_PASSWORD, **extra):
        now = datetime.now(timezone.utc)
        document = {
            "name": "Test User",
            "email": email,
            "password": hash_password(password),
            "role": int(role),
            "wishlist": [],
            "addresses": [],
            "createdAt": now,
            "updatedAt": now,
            **extra,
        }
        document["_id"] = collections.users.raw.insert_one(document).inserted_id
        return document

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(str(user['_id']))}"}

    return _headers


@pytest.fixture
def sent_secrets(mailer):
    """Extracts (otp, link token) from the last reset email the mock mailer received."""

    def _extract():
        to, subject, html = mailer.send.call_args.args
        otp = re.search(r'letter-spacing: 4px;">(\d{6})<', html).group(1)
        token_match = re.search(r"token=([0-9a-f]{64})", html)
        return otp, token_match.group(1) if token_match else None

    return _extract
