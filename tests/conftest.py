"""Pytest configuration for the server inventory API."""
import pytest
from fastapi.testclient import TestClient

from inventory.config import Settings
from inventory.database import Database
from inventory.main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        app_env="development",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'inventory.db'}",
        jwt_secret="test-jwt-secret",
        encryption_key="test-encryption-key",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
async def database(settings):
    db = Database(settings.database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture
def user_payload():
    return {"username": "alice", "email": "alice@acme.io", "password": "s3cret!"}


@pytest.fixture
def auth_headers(client, user_payload):
    assert client.post("/api/auth/register", json=user_payload).status_code == 201
    resp = client.post(
        "/api/auth/login",
        json={"username": user_payload["username"], "password": user_payload["password"]},
    )
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def server_payload():
    """A complete, valid server record."""
    return {
        "project_name": "Billing",
        "project_purpose": "Invoice generation",
        "environment": "production",
        "vm_name": "billing-vm-01",
        "cpu": 4,
        "ram": 16,
        "storage": 200,
        "total_cost": 129.5,
        "os_version": "Ubuntu 22.04",
        "ip": "10.0.0.15",
        "hostname": "billing01.internal",
        "username": "deploy",
        "password": "vm-login-pass",
        "server_no": "SRV-0015",
        "created_by": "alice",
        "remarks": "primary node",
        "delete_date": None,
    }
