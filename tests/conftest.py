"""
Pytest configuration and fixtures for Portus tests.
"""

import os
import threading
from datetime import datetime, timezone

import pytest

# Settings are read once and cached; configure them before anything imports config
os.environ.update({
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_REGION": "us-east-1",
    "S3_BUCKET_NAME": "portus-test",
    "CATALOG_KEY": "metadata.json",
    "CATALOG_FETCH_TIMEOUT": "5",
    "DOWNLOAD_SERVICE_URL": "https://download.example.com",
    "DOWNLOAD_CHUNK_SIZE": "4",
    "ADMIN_EMAIL": "admin@example.com",
    "ADMIN_PASSWORD": "Sup3r$ecret",
    "SESSION_SECRET": "test-session-secret",
    "SESSION_COOKIE_SECURE": "false",
})

from core.aws.object_store import ObjectInfo  # noqa: E402
from core.exceptions import (  # noqa: E402
    ObjectNotFoundError,
    ObjectStoreDeleteError,
    ObjectStoreReadError,
    ObjectStoreWriteError,
)

CATALOG_KEY = "metadata.json"


class InMemoryStream:
    def __init__(self, store, key, data, chunk_size, fail_after):
        self.store = store
        self.key = key
        self.data = data
        self.chunk_size = chunk_size
        self.fail_after = fail_after
        self.closed = False

    def iter_chunks(self):
        for index, start in enumerate(range(0, len(self.data), self.chunk_size)):
            if self.fail_after is not None and index >= self.fail_after:
                raise ObjectStoreReadError(
                    message="Object stream interrupted: connection reset",
                    detail={"key": self.key}
                )
            yield self.data[start:start + self.chunk_size]

    def close(self):
        self.closed = True
        self.store.closed_streams.append(self.key)


class InMemoryObjectStore:
    """Thread-safe ObjectStore double with fault injection."""

    def __init__(self):
        self._lock = threading.Lock()
        self.objects = {}
        self.calls = []
        self.fail_put = set()
        self.fail_get = set()
        self.fail_delete = set()
        self.stream_fail_after = {}
        self.closed_streams = []
        self.get_barrier = None

    def _log(self, op, key):
        with self._lock:
            self.calls.append((op, key))

    def get_object(self, key):
        self._log("get", key)
        barrier = self.get_barrier
        if barrier is not None and key == CATALOG_KEY:
            barrier.wait(timeout=5)
        if key in self.fail_get:
            raise ObjectStoreReadError(message=f"Injected read failure: {key}", detail={"key": key})
        with self._lock:
            if key not in self.objects:
                raise ObjectNotFoundError(message=f"Object not found: {key}", detail={"key": key})
            return self.objects[key][0]

    def open_object_stream(self, key, chunk_size):
        data = self.get_object(key)
        return InMemoryStream(self, key, data, chunk_size, self.stream_fail_after.get(key))

    def put_object(self, key, data, content_type):
        self._log("put", key)
        if key in self.fail_put:
            raise ObjectStoreWriteError(message=f"Injected write failure: {key}", detail={"key": key})
        with self._lock:
            self.objects[key] = (bytes(data), content_type, datetime.now(timezone.utc))

    def delete_object(self, key):
        self._log("delete", key)
        if key in self.fail_delete:
            raise ObjectStoreDeleteError(message=f"Injected delete failure: {key}", detail={"key": key})
        with self._lock:
            self.objects.pop(key, None)

    def list_objects(self, prefix=""):
        with self._lock:
            return [
                ObjectInfo(key=key, size=len(data), last_modified=modified)
                for key, (data, _, modified) in sorted(self.objects.items())
                if key.startswith(prefix)
            ]


@pytest.fixture
def object_store():
    """Empty in-memory object store."""
    return InMemoryObjectStore()


@pytest.fixture
def catalog_repo(object_store):
    from catalog.repositories import CatalogRepository
    return CatalogRepository(object_store, catalog_key=CATALOG_KEY, fetch_timeout=5)


@pytest.fixture
def registrar(object_store, catalog_repo):
    from services.asset_service.registrar import AssetRegistrar
    return AssetRegistrar(object_store, catalog_repo, "https://download.example.com")


@pytest.fixture
def audit():
    from services.transfer_service.audit import AuditRecorder
    return AuditRecorder()


@pytest.fixture
def gateway(object_store, catalog_repo, audit):
    from services.transfer_service.gateway import TransferGateway
    return TransferGateway(object_store, catalog_repo, audit, chunk_size=4)


@pytest.fixture
def admin_client(object_store):
    """Admin app client with a logged-in session."""
    from fastapi.testclient import TestClient
    from admin_main import app
    from core.aws.s3_client import get_object_store

    app.dependency_overrides[get_object_store] = lambda: object_store
    client = TestClient(app)
    response = client.post("/login", json={"email": "admin@example.com", "password": "Sup3r$ecret"})
    assert response.status_code == 200
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_admin_client(object_store):
    """Admin app client without a session."""
    from fastapi.testclient import TestClient
    from admin_main import app
    from core.aws.s3_client import get_object_store

    app.dependency_overrides[get_object_store] = lambda: object_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def download_client(object_store, audit):
    """Download app client sharing the same object store as the admin app."""
    from fastapi.testclient import TestClient
    from download_main import app
    from core.aws.s3_client import get_object_store
    from core.dependencies import get_audit_recorder

    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_audit_recorder] = lambda: audit
    yield TestClient(app)
    app.dependency_overrides.clear()
