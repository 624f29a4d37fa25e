import base64
import os
from datetime import datetime, timedelta

# Configure before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.services.file_storage import FileStorageService, get_file_storage
from main import app

PASSWORD = "Passw0rd1"

# 1x1 grayscale PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00" + b"\x00" * 64 + b"\xff\xd9"
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def storage(tmp_path):
    return FileStorageService(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def client(session_factory, storage):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def future(days: int = 7) -> str:
    return (datetime.utcnow() + timedelta(days=days)).isoformat()


def _register(client, name: str, email: str, role: str) -> dict:
    response = client.post("/auth/register", json={
        "name": name,
        "email": email,
        "password": PASSWORD,
        "role": role,
    })
    assert response.status_code == 201, response.text
    body = response.json()
    return {
        "id": body["user"]["id"],
        "token": body["access_token"],
        "headers": auth_headers(body["access_token"]),
    }


@pytest.fixture
def register(client):
    def _make(name: str, email: str, role: str = "member") -> dict:
        return _register(client, name, email, role)
    return _make


@pytest.fixture
def pm(register):
    return register("Paula Manager", "pm@example.com", "pm")


@pytest.fixture
def other_pm(register):
    return register("Oscar Manager", "pm2@example.com", "pm")


@pytest.fixture
def member(register):
    return register("Mia Member", "member@example.com")


@pytest.fixture
def other_member(register):
    return register("Max Member", "member2@example.com")


@pytest.fixture
def project(client, pm, member):
    """Project owned by ``pm`` with ``member`` added"""
    response = client.post("/projects/", json={"name": "Apollo", "description": "Launch"}, headers=pm["headers"])
    assert response.status_code == 201, response.text
    project_id = response.json()["id"]

    response = client.post(f"/projects/{project_id}/members", json={"member_id": member["id"]}, headers=pm["headers"])
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def create_task(client, pm, member, project):
    def _make(headers=None, **overrides) -> dict:
        payload = {
            "title": "Write docs",
            "description": "User guide",
            "assigned_to": member["id"],
            "priority": "medium",
            "due_date": future(),
        }
        payload.update(overrides)
        response = client.post(
            f"/projects/{project['id']}/tasks", json=payload, headers=headers or pm["headers"]
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make


@pytest.fixture
def task(create_task):
    return create_task()
