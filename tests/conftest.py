import os

# In-memory stores for the import-time app; tests build their own on disk.
os.environ.setdefault("CONFIG_DB_PATH", ":memory:")
os.environ.setdefault("CREDENTIAL_DB_PATH", ":memory:")
os.environ.setdefault("GROUP_DB_PATH", ":memory:")
os.environ.setdefault("EVENT_DB_PATH", ":memory:")
os.environ.setdefault("AUTO_SEED", "false")
os.environ.setdefault("DEVICE_SYNC_ENABLED", "false")
os.environ.setdefault("ACS_JWT_SECRET", "test-jwt-secret-strong-value-123456")
os.environ.setdefault("ACS_PASSWORD_HASH_ROUNDS", "1000")

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from acs_backend.core.config import Settings
from acs_backend.core.db import create_all_tables, create_stores
from acs_backend.main import create_app


ADMIN_PASSWORD = "admin-pass-123"
FACTORY_PASSWORD = "factory-pass-123"


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "CONFIG_DB_PATH": str(tmp_path / "config.db"),
        "CREDENTIAL_DB_PATH": str(tmp_path / "credential.db"),
        "GROUP_DB_PATH": str(tmp_path / "othergroup.db"),
        "EVENT_DB_PATH": str(tmp_path / "eventmessage.db"),
        "ACS_JWT_SECRET": "test-jwt-secret-strong-value-123456",
        "AUTO_CREATE_DB": True,
        "AUTO_SEED": True,
        "ACS_ADMIN_PASSWORD": ADMIN_PASSWORD,
        "ACS_FACTORY_PASSWORD": FACTORY_PASSWORD,
        "DEVICE_BACKEND_URL": "http://device.test/",
        "DEVICE_TIMEOUT_SEC": 2,
        "DEVICE_SYNC_ENABLED": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def stores(settings):
    handles = create_stores(settings)
    create_all_tables(handles)
    yield handles
    handles.dispose()


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def login(client: TestClient, username: str = "admin", password: str = ADMIN_PASSWORD) -> str:
    resp = client.post("/api/controllerUser/login", json={"username": username, "password": password})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True, body
    return body["data"]["token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client):
    return auth(login(client))
