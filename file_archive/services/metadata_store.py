"""Abstract base class for file metadata storage."""

from abc import ABC, abstractmethod
from typing import List

from file_archive.core.result import Result
from file_archive.schemas.schemas import FileRecord

# Width of the created_by / last_modified_by columns
USER_ID_MAX_LENGTH = 50


def check_user_id(user_id: str, method: str) -> Result[None]:
    """BadRequest unless ``user_id`` fits the audit columns."""
    if len(user_id or "") > USER_ID_MAX_LENGTH:
        return Result.failure_bad_request(
            f"{method}: The user id is longer than {USER_ID_MAX_LENGTH} characters."
        )
    return Result.success()


class MetadataStore(ABC):
    """CRUD over ``FileRecord`` keyed by the numeric file id.

    Implementations return a ``Result`` for every expected failure and
    convert unexpected I/O errors into a ServerError result.
    """

    @abstractmethod
    def create_file_info(self, record: FileRecord, user_id: str) -> Result[FileRecord]:
        """Stamp created/modified fields, persist and assign ``record.id``."""
        ...

    @abstractmethod
    def update_file_info(self, record: FileRecord, user_id: str) -> Result[FileRecord]:
        """Replace the record with the same id; NotFound if there is none.

        ``created``/``created_by`` and ``mime_type`` are kept from the
        stored record; the MIME type describes the blob, which an update
        never touches.
        """
        ...

    @abstractmethod
    def delete_file_info(self, id: int) -> Result[None]:
        """Remove the record; NotFound if there is none."""
        ...

    @abstractmethod
    def get_list_of_file_info_by_parent_key(self, parent_key: str) -> Result[List[FileRecord]]:
        """All records under ``parent_key``; an empty list is a success."""
        ...

    @abstractmethod
    def get_file_info_by_id(self, id: int) -> Result[FileRecord]:
        ...
