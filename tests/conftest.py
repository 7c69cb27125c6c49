import asyncio
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="greendata-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["PROCESSING_FUNCTION_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from greendata.core.database import AsyncSessionLocal, Base, engine
from greendata.main import app
from greendata.models import file, user  # noqa: F401
from greendata.models.user import Profile, Role
from greendata.services.storage_service import ObjectNotFoundError, StorageError, get_storage

PASSWORD = "secret123"


class InMemoryStorage:
    """Bucket stand-in keyed by object name; ``fail`` holds operations that should error."""

    def __init__(self):
        self.objects = {}
        self.fail = set()

    def upload(self, object_name, content, content_type=None):
        if "upload" in self.fail:
            raise StorageError("The bucket is unavailable")
        self.objects[object_name] = content
        return object_name

    def download(self, object_name):
        if "download" in self.fail:
            raise StorageError("Download failed")
        if object_name not in self.objects:
            raise ObjectNotFoundError("Object not found")
        return self.objects[object_name]

    def remove(self, object_name):
        if "remove" in self.fail:
            raise StorageError("Remove failed")
        self.objects.pop(object_name, None)


async def reset_database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def client(storage):
    asyncio.run(reset_database())
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
async def db():
    await reset_database()
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def owner(db):
    profile = Profile(email="owner@example.com", full_name="Owner", hashed_password="x", role=Role.USER)
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


def register(client, email, full_name=None, password=PASSWORD):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "full_name": full_name},
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client, email, password=PASSWORD):
    response = client.post("/api/v1/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    def _make(email, full_name=None):
        profile = register(client, email, full_name)
        return profile, login(client, email)
    return _make


def upload(client, token, filename="report.pdf", content=b"hello world", content_type="application/pdf"):
    return client.post(
        "/api/v1/files/upload",
        headers=auth(token),
        files=[("files", (filename, content, content_type))],
    )
