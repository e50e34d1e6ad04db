"""Shared fixtures: settings, both storage adapters, app and HTTP clients."""

import pytest
from fastapi.testclient import TestClient

from sacrewards.api.main import create_app
from sacrewards.settings import Settings
from sacrewards.storage.db import Database
from sacrewards.storage.memory import MemoryStorage
from sacrewards.storage.sql import SqlStorage


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        env="test",
        secret_key="test-secret-key-that-is-long-enough-1234",
        database_url="sqlite://",
        log_level="WARNING",
    )


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    """Every storage-backed test runs against both adapters."""
    if request.param == "memory":
        yield MemoryStorage()
        return

    sql_storage = SqlStorage(Database("sqlite://"))
    sql_storage.create_tables()
    yield sql_storage
    sql_storage.close()


@pytest.fixture
def app(test_settings, storage):
    return create_app(test_settings, storage=storage)


@pytest.fixture
def client(app):
    """Anonymous client."""
    return TestClient(app)


def register(client: TestClient, name: str, email: str, password: str = "secret123") -> dict:
    response = client.post(
        "/api/register",
        json={"name": name, "email": email, "password": password, "phone": "9876543210"},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def user_client(app):
    """Client with a signed-in regular user."""
    client = TestClient(app)
    client.user = register(client, "Ravi Kumar", "ravi@example.com")
    return client


@pytest.fixture
def admin_client(app, storage):
    """Client with a signed-in admin."""
    client = TestClient(app)
    user = register(client, "Meera Admin", "meera@example.com")
    storage.update_user(user["id"], is_admin=True)
    client.user = user
    return client
