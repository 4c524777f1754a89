"""Abstract base class for file content storage.

Blobs are addressed only by the numeric id of their FileRecord. Opening a
blob is gated by a release delay: a file cannot be downloaded until
``seconds_before_release`` seconds after it was created, which leaves time
for an out-of-band virus scan.
"""

import logging
from abc import ABC, abstractmethod
from typing import BinaryIO

from file_archive.core.clock import Clock, is_released, release_time, utc_now
from file_archive.core.result import Result, copy_failure
from file_archive.services.metadata_store import MetadataStore
from file_archive.services.payload import FilePayload

logger = logging.getLogger("file_archive")


class BlobStore(ABC):
    """Store, open and delete raw file content.

    Subclasses implement the three storage operations; opening must call
    ``check_release`` first.
    """

    def __init__(
        self,
        metadata_store: MetadataStore,
        max_file_size: int,
        seconds_before_release: int = 0,
        clock: Clock = utc_now,
    ):
        if seconds_before_release < 0:
            raise ValueError("seconds_before_release is negative")
        self.set_max_file_size(max_file_size)
        self._metadata_store = metadata_store
        self.seconds_before_release = seconds_before_release
        self._clock = clock

    @property
    def max_file_size(self) -> int:
        return self._max_file_size

    def set_max_file_size(self, max_file_size: int) -> None:
        if max_file_size <= 0:
            raise ValueError("max_file_size is 0 or less")
        self._max_file_size = max_file_size

    @abstractmethod
    def store_file(self, id: int, file: FilePayload) -> Result[None]:
        """Write the payload under ``id``, replacing existing content."""
        ...

    @abstractmethod
    def open_stored_file(self, id: int) -> Result[BinaryIO]:
        """Open the blob for reading, subject to the release gate."""
        ...

    @abstractmethod
    def delete_stored_file(self, id: int) -> Result[None]:
        """Remove the blob; a blob that is already gone is not an error."""
        ...

    def close_stored_file(self, stream: BinaryIO) -> Result[None]:
        try:
            stream.close()
            return Result.success()
        except OSError:
            logger.critical("Error occurred in 'close_stored_file(stream)'.", exc_info=True)
            return Result.fatal("An error occurred")

    def check_release(self, id: int) -> Result[None]:
        """Forbidden until the file's release time has passed."""
        info_result = self._metadata_store.get_file_info_by_id(id)
        if not info_result.is_success:
            return copy_failure(info_result)

        created = info_result.data.created
        if created is None:
            logger.critical("Error occurred in 'check_release(%s)'. The record has no created time.", id)
            return Result.fatal("An error occurred")

        if not is_released(created, self.seconds_before_release, now=self._clock()):
            released_at = release_time(created, self.seconds_before_release)
            return Result.failure_forbidden(
                f"The file with Id {id}, has not yet been released. "
                f"It will be released at {released_at.isoformat(timespec='seconds')}."
            )
        return Result.success()
