"""Composition root: builds the configured backends from settings.

Settings are read here and only here; components receive plain values.
Each getter doubles as a FastAPI dependency and is cached so one instance
serves the whole process.
"""

from functools import lru_cache

from minio import Minio

from file_archive.core.config import settings
from file_archive.core.security import TokenSigner
from file_archive.services.archive_service import ArchiveService
from file_archive.services.blob_folder import FolderBlobStore
from file_archive.services.blob_minio import MinioBlobStore
from file_archive.services.blob_store import BlobStore
from file_archive.services.download_token import DownloadTokenService
from file_archive.services.metadata_db import DbMetadataStore
from file_archive.services.metadata_json import JsonMetadataStore
from file_archive.services.metadata_store import MetadataStore
from file_archive.services.upload_policy import UploadPolicy


@lru_cache
def get_metadata_store() -> MetadataStore:
    if settings.FILE_ARCHIVE_METADATA_BACKEND == "db":
        from file_archive.db.session import get_session_factory
        return DbMetadataStore(get_session_factory())
    return JsonMetadataStore(settings.FILE_ARCHIVE_METADATA_PATH)


@lru_cache
def get_blob_store() -> BlobStore:
    if settings.FILE_ARCHIVE_STORAGE_BACKEND == "minio":
        client = Minio(
            settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
        )
        return MinioBlobStore(
            client,
            settings.MINIO_BUCKET,
            get_metadata_store(),
            max_file_size=settings.FILE_ARCHIVE_MAX_FILE_SIZE,
            folder=settings.MINIO_FOLDER,
            seconds_before_release=settings.FILE_ARCHIVE_SECONDS_BEFORE_RELEASE,
        )
    return FolderBlobStore(
        settings.FILE_ARCHIVE_PATH,
        get_metadata_store(),
        max_file_size=settings.FILE_ARCHIVE_MAX_FILE_SIZE,
        seconds_before_release=settings.FILE_ARCHIVE_SECONDS_BEFORE_RELEASE,
    )


@lru_cache
def get_download_token_service() -> DownloadTokenService:
    signer = TokenSigner(
        settings.JWT_SECRET,
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
        algorithm=settings.JWT_ALGORITHM,
    )
    return DownloadTokenService(signer, expire_minutes=settings.JWT_EXPIRY_MINUTES)


@lru_cache
def get_archive_service() -> ArchiveService:
    return ArchiveService(get_metadata_store(), get_blob_store())


@lru_cache
def get_upload_policy() -> UploadPolicy:
    return UploadPolicy(
        settings.FILE_ARCHIVE_MAX_FILE_SIZE,
        accepted_file_types=settings.FILE_ARCHIVE_ACCEPTED_FILE_TYPES,
        max_files=settings.FILE_ARCHIVE_MAX_FILES_PER_PARENT,
    )
