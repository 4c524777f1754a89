import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from file_archive.core.security import TokenSigner
from file_archive.db.base import Base
from file_archive.db.session import build_session_factory
from file_archive.main import app
from file_archive.services.archive_service import ArchiveService
from file_archive.services.blob_folder import FolderBlobStore
from file_archive.services.download_token import DownloadTokenService
from file_archive.services.factory import (
    get_archive_service, get_blob_store, get_download_token_service, get_metadata_store, get_upload_policy,
)
from file_archive.services.metadata_db import DbMetadataStore
from file_archive.services.metadata_json import JsonMetadataStore
from file_archive.services.upload_policy import UploadPolicy
import file_archive.models  # noqa: F401

TEST_SECRET = "test-secret-for-download-tokens"
TEST_ISSUER = "file-archive-test"
TEST_AUDIENCE = "file-archive-test-download"
MAX_FILE_SIZE = 1024


class FakeClock:
    """Settable clock shared by the stores under test."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def metadata_dir(tmp_path):
    path = tmp_path / "metadata"
    path.mkdir()
    return str(path)


@pytest.fixture
def blob_dir(tmp_path):
    path = tmp_path / "blobs"
    path.mkdir()
    return str(path)


@pytest.fixture
def json_store(metadata_dir, clock):
    return JsonMetadataStore(metadata_dir, clock=clock)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db_store(session_factory, clock):
    return DbMetadataStore(session_factory, clock=clock)


@pytest.fixture(params=["json", "db"])
def metadata_store(request):
    """Runs a test against both metadata backends."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def blob_store(blob_dir, json_store, clock):
    return FolderBlobStore(blob_dir, json_store, max_file_size=MAX_FILE_SIZE, clock=clock)


@pytest.fixture
def signer():
    return TokenSigner(TEST_SECRET, issuer=TEST_ISSUER, audience=TEST_AUDIENCE)


@pytest.fixture
def token_service(signer):
    return DownloadTokenService(signer, expire_minutes=60)


@pytest.fixture
def archive_service(json_store, blob_store):
    return ArchiveService(json_store, blob_store)


@pytest.fixture
def upload_policy():
    return UploadPolicy(MAX_FILE_SIZE)


@pytest.fixture
def client(json_store, blob_store, token_service, archive_service, upload_policy):
    """API client wired to temporary stores."""
    app.dependency_overrides[get_metadata_store] = lambda: json_store
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_download_token_service] = lambda: token_service
    app.dependency_overrides[get_archive_service] = lambda: archive_service
    app.dependency_overrides[get_upload_policy] = lambda: upload_policy
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def read_blob(blob_dir):
    """Raw content of a stored blob, read straight from disk."""
    def _read(id: int) -> bytes:
        with open(os.path.join(blob_dir, str(id)), "rb") as f:
            return f.read()
    return _read
