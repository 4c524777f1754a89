"""Blob store keeping each file as an object in a MinIO / S3 bucket.

The object key is ``<folder>/<id>`` (or just ``<id>`` without a folder);
bucket and folder are lower-cased to satisfy bucket naming rules.
"""

import logging
from typing import BinaryIO, Optional

from minio import Minio
from minio.error import MinioException
from urllib3.exceptions import HTTPError

from file_archive.core.clock import Clock, utc_now
from file_archive.core.exceptions import FileTooLargeError
from file_archive.core.result import Result
from file_archive.services.blob_store import BlobStore
from file_archive.services.metadata_store import MetadataStore
from file_archive.services.payload import FilePayload

logger = logging.getLogger("file_archive")

# Multipart chunk size for streams of unknown length (MinIO minimum is 5 MiB)
PART_SIZE = 10 * 1024 * 1024

_STORAGE_ERRORS = (MinioException, HTTPError, OSError)


class MinioObjectStream:
    """Readable object body; closing it also returns the HTTP connection."""

    def __init__(self, response):
        self._response = response
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        return self._response.read(None if size is None or size < 0 else size)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._response.close()
        self._response.release_conn()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class MinioBlobStore(BlobStore):
    """Object storage. No locking; the last writer of an id wins."""

    def __init__(
        self,
        client: Minio,
        bucket: str,
        metadata_store: MetadataStore,
        max_file_size: int,
        folder: Optional[str] = None,
        seconds_before_release: int = 0,
        clock: Clock = utc_now,
    ):
        super().__init__(metadata_store, max_file_size, seconds_before_release, clock)
        self.client = client
        self.bucket = bucket.lower()
        self.folder = (folder or "").strip("/").lower()

    def object_name(self, id: int) -> str:
        return f"{self.folder}/{id}" if self.folder else str(id)

    def ensure_bucket(self) -> None:
        """Create the bucket if it doesn't exist."""
        if not self.client.bucket_exists(bucket_name=self.bucket):
            self.client.make_bucket(bucket_name=self.bucket)

    def store_file(self, id: int, file: FilePayload) -> Result[None]:
        try:
            self.ensure_bucket()
            with file.open_read_stream(self.max_file_size) as source:
                # Unknown length: a declared size is not trusted to bound the upload
                self.client.put_object(
                    bucket_name=self.bucket,
                    object_name=self.object_name(id),
                    data=source,
                    length=-1,
                    part_size=PART_SIZE,
                    content_type=file.content_type or "application/octet-stream",
                )
            return Result.success()
        except FileTooLargeError as e:
            logger.warning("Rejected file for id %s in 'store_file': %s", id, e.message)
            return Result.failure_bad_request(f"'{file.name}': {e.message}.")
        except _STORAGE_ERRORS:
            logger.critical("Error occurred in 'store_file(%s, file)'.", id, exc_info=True)
            return Result.fatal("An error occurred")

    def open_stored_file(self, id: int) -> Result[BinaryIO]:
        release_result = self.check_release(id)
        if not release_result.is_success:
            return release_result

        try:
            response = self.client.get_object(bucket_name=self.bucket, object_name=self.object_name(id))
            return Result.success(MinioObjectStream(response))
        except _STORAGE_ERRORS:
            logger.critical("Error occurred in 'open_stored_file(%s)'.", id, exc_info=True)
            return Result.fatal("An error occurred")

    def delete_stored_file(self, id: int) -> Result[None]:
        # Removing a missing object succeeds on S3 compatible stores
        try:
            self.client.remove_object(bucket_name=self.bucket, object_name=self.object_name(id))
            return Result.success()
        except _STORAGE_ERRORS:
            logger.critical("Error occurred in 'delete_stored_file(%s)'.", id, exc_info=True)
            return Result.fatal("An error occurred")
