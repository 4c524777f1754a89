"""Archive service: applies UI file changes to the metadata and blob stores."""

import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from file_archive.core.clock import utc_now
from file_archive.core.result import Result, copy_failure
from file_archive.schemas.schemas import FileInfoUI, FileRecord
from file_archive.services.blob_store import BlobStore
from file_archive.services.metadata_store import MetadataStore

logger = logging.getLogger("file_archive")


class ArchiveFileList:
    """The UI's working list of files plus a hook to redraw it."""

    def __init__(self, files: Optional[List[FileInfoUI]] = None, on_refresh: Optional[Callable[[], None]] = None):
        self.files: List[FileInfoUI] = files if files is not None else []
        self._on_refresh = on_refresh

    def refresh_data(self) -> None:
        if self._on_refresh is not None:
            self._on_refresh()


def _validation_messages(e: ValidationError) -> List[str]:
    return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]


class ArchiveService:
    """Sequences metadata and blob operations so both stay consistent.

    Order per operation:
      insert: metadata first (it assigns the id), then the blob.
      delete: blob first, then metadata, so a crash leaves a findable record.
      update: metadata only; content is never edited in place.
    """

    def __init__(self, metadata_store: MetadataStore, blob_store: BlobStore):
        self.metadata_store = metadata_store
        self.blob_store = blob_store

    def create_update_delete_archive_from_ui(
        self,
        parent_key: str,
        file_list: ArchiveFileList,
        user_id: str,
    ) -> Result[None]:
        """Apply every pending change in order, stopping at the first failure.

        Changes applied before a failure are kept; later ones are not tried.
        On success, deleted entries leave the list and the UI is refreshed.
        """
        for one_file in file_list.files:
            if one_file.insert:
                result = self._insert_file(parent_key, user_id, one_file)
            elif one_file.delete:
                result = self._delete_file(one_file)
            elif one_file.update:
                result = self._update_file(parent_key, user_id, one_file)
            else:
                continue

            if not result.is_success:
                return result

        file_list.files[:] = [f for f in file_list.files if not f.delete]
        file_list.refresh_data()
        return Result.success()

    def get_list_of_file_info_ui_for_archive(self, parent_key: str) -> Result[List[FileInfoUI]]:
        """Read-only snapshot of the archive with no pending changes."""
        list_result = self.metadata_store.get_list_of_file_info_by_parent_key(parent_key)
        if not list_result.is_success:
            return copy_failure(list_result)

        return Result.success([
            FileInfoUI(
                id=info.id,
                filename=info.filename,
                mime_type=info.mime_type,
                description=info.description,
                parent_key=info.parent_key,
                created=info.created,
                created_by=info.created_by,
                last_modified=info.last_modified,
                last_modified_by=info.last_modified_by,
            )
            for info in list_result.data
        ])

    def delete_archive_by_parent_key(self, parent_key: str) -> Result[None]:
        """Delete every file under ``parent_key``; stops at the first failure."""
        list_result = self.metadata_store.get_list_of_file_info_by_parent_key(parent_key)
        if not list_result.is_success:
            return copy_failure(list_result)

        for info in list_result.data:
            result = self._delete_blob_and_info(info.id)
            if not result.is_success:
                return result

        logger.info("Deleted %s file(s) under parent key %r", len(list_result.data), parent_key)
        return Result.success()

    def _insert_file(self, parent_key: str, user_id: str, one_file: FileInfoUI) -> Result[None]:
        try:
            file_info = FileRecord(
                filename=one_file.filename,
                mime_type=one_file.file.content_type if one_file.file is not None else one_file.mime_type,
                description=one_file.description,
                parent_key=parent_key,
            )
        except ValidationError as e:
            return Result.failure_bad_request(_validation_messages(e))

        create_result = self.metadata_store.create_file_info(file_info, user_id)
        if not create_result.is_success:
            return copy_failure(create_result)

        if one_file.file is not None:
            store_result = self.blob_store.store_file(file_info.id, one_file.file)
            if not store_result.is_success:
                # No rollback: the record stays behind without content
                logger.warning(
                    "Metadata record %s is orphaned, storing its content failed: %s",
                    file_info.id,
                    store_result.messages,
                )
                return store_result

        one_file.id = file_info.id
        one_file.mime_type = file_info.mime_type
        one_file.parent_key = parent_key
        one_file.created = file_info.created
        one_file.created_by = file_info.created_by
        one_file.last_modified = file_info.last_modified
        one_file.last_modified_by = file_info.last_modified_by
        one_file.insert = False
        one_file.update = False
        return Result.success()

    def _delete_file(self, one_file: FileInfoUI) -> Result[None]:
        # A file that was never stored has nothing to delete
        if one_file.id is None:
            return Result.success()
        return self._delete_blob_and_info(one_file.id)

    def _delete_blob_and_info(self, id: int) -> Result[None]:
        return self.blob_store.delete_stored_file(id).and_(self.metadata_store.delete_file_info(id))

    def _update_file(self, parent_key: str, user_id: str, one_file: FileInfoUI) -> Result[None]:
        if one_file.id is None:
            return Result.success()

        try:
            file_info = FileRecord(
                id=one_file.id,
                filename=one_file.filename,
                mime_type=one_file.mime_type,
                description=one_file.description,
                parent_key=parent_key,
                created=one_file.created or utc_now(),
                created_by=one_file.created_by or "",
            )
        except ValidationError as e:
            return Result.failure_bad_request(_validation_messages(e))

        update_result = self.metadata_store.update_file_info(file_info, user_id)
        if not update_result.is_success:
            return copy_failure(update_result)

        one_file.mime_type = file_info.mime_type
        one_file.last_modified = file_info.last_modified
        one_file.last_modified_by = file_info.last_modified_by
        one_file.update = False
        return Result.success()
