"""Blob store writing each file as ``<root>/<id>`` on the local filesystem."""

import logging
import os
import shutil
from typing import BinaryIO

from file_archive.core.clock import Clock, utc_now
from file_archive.core.exceptions import ConfigurationError, FileTooLargeError
from file_archive.core.result import Result
from file_archive.services.blob_store import BlobStore
from file_archive.services.metadata_store import MetadataStore
from file_archive.services.payload import FilePayload

logger = logging.getLogger("file_archive")


class FolderBlobStore(BlobStore):
    """Local folder storage. No locking; the last writer of an id wins."""

    def __init__(
        self,
        target_path: str,
        metadata_store: MetadataStore,
        max_file_size: int,
        seconds_before_release: int = 0,
        clock: Clock = utc_now,
    ):
        if not target_path or not os.path.isdir(target_path):
            raise ConfigurationError(f"Storage directory does not exist: '{target_path}'")
        super().__init__(metadata_store, max_file_size, seconds_before_release, clock)
        self.target_path = target_path

    def _file_path(self, id: int) -> str:
        return os.path.join(self.target_path, str(id))

    def store_file(self, id: int, file: FilePayload) -> Result[None]:
        file_path = self._file_path(id)
        # Written aside and renamed, so a rejected upload never clobbers stored content
        part_path = file_path + ".part"
        try:
            with file.open_read_stream(self.max_file_size) as source, open(part_path, "wb") as output:
                shutil.copyfileobj(source, output)
            os.replace(part_path, file_path)
            return Result.success()
        except FileTooLargeError as e:
            logger.warning("Rejected file for id %s in 'store_file': %s", id, e.message)
            self._remove_partial(part_path)
            return Result.failure_bad_request(f"'{file.name}': {e.message}.")
        except OSError:
            logger.critical("Error occurred in 'store_file(%s, file)'.", id, exc_info=True)
            self._remove_partial(part_path)
            return Result.fatal("An error occurred")

    def open_stored_file(self, id: int) -> Result[BinaryIO]:
        release_result = self.check_release(id)
        if not release_result.is_success:
            return release_result

        try:
            return Result.success(open(self._file_path(id), "rb"))
        except OSError:
            logger.critical("Error occurred in 'open_stored_file(%s)'.", id, exc_info=True)
            return Result.fatal("An error occurred")

    def delete_stored_file(self, id: int) -> Result[None]:
        try:
            os.remove(self._file_path(id))
        except FileNotFoundError:
            logger.info("Blob %s was already absent in 'delete_stored_file'.", id)
        except OSError:
            logger.critical("Error occurred in 'delete_stored_file(%s)'.", id, exc_info=True)
            return Result.fatal("An error occurred")
        return Result.success()

    @staticmethod
    def _remove_partial(file_path: str) -> None:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            pass
