import os

os.environ.setdefault("FILEVAULT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("FILEVAULT_DATABASE_URL", "sqlite://")
os.environ.setdefault("FILEVAULT_BLOB_LATENCY_MS", "0")
os.environ.setdefault("FILEVAULT_BLOB_RETRY_BACKOFF_SECONDS", "0")
os.environ.setdefault("FILEVAULT_LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from filevault import models  # noqa: F401
from filevault.blobstore import MemoryBlobStore, ResilientBlobStore
from filevault.db import get_session
from filevault.main import app
from filevault.repository import VaultRepository


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repo(session):
    return VaultRepository(session)


@pytest.fixture
def memory_backend():
    return MemoryBlobStore()


@pytest.fixture
def blob_store(memory_backend):
    return ResilientBlobStore(memory_backend, timeout=5, backoff=0)


@pytest.fixture
def client(engine, blob_store):
    def _session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    previous_store = app.state.blob_store
    app.state.blob_store = blob_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.blob_store = previous_store


@pytest.fixture
def make_user(repo):
    """Create a user directly in the database (password hash is not checked)."""
    counter = {"n": 0}

    def _make(username=None, email=None):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        email = email or f"{username}@example.com"
        return repo.create_user(username, email, "not-a-real-hash")

    return _make


def register_and_login(client, username, password="secret123", email=None):
    email = email or f"{username}@example.com"
    resp = client.post("/auth/register", json={"username": username, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/token", data={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"], {"Authorization": f"Bearer {resp.json()['access_token']}"}


def upload(client, headers, name="notes.txt", size=100, mime_type="text/plain", data="U2FsdGVkX1+cipher"):
    return client.post(
        "/api/files",
        json={
            "name": name,
            "size": size,
            "mime_type": mime_type,
            "encryption_key": "a" * 64,
            "encrypted_data": data,
        },
        headers=headers,
    )


def make_file(repo, owner, name="report.pdf", size=10, mime_type="application/pdf"):
    """Insert a confirmed file without going through the blob store."""
    f = repo.create_pending_file(owner.id, name, size, mime_type)
    return repo.confirm_file(f, f"Qm{f.id:044d}", "k" * 64)
