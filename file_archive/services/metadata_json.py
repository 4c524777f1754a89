"""Metadata store keeping every FileRecord in one JSON file.

For development only: each call reads the whole file and writes it back
with no locking, so concurrent writers (several workers or processes)
can lose updates. Production deployments use the table-backed store.
"""

import logging
import os
from typing import List

from pydantic import TypeAdapter, ValidationError

from file_archive.core.clock import Clock, utc_now
from file_archive.core.exceptions import ConfigurationError
from file_archive.core.result import Result, copy_failure
from file_archive.schemas.schemas import FileRecord
from file_archive.services.metadata_store import MetadataStore, check_user_id

logger = logging.getLogger("file_archive")

JSON_FILENAME = "FileInfo.json"

_records_adapter = TypeAdapter(List[FileRecord])


class JsonMetadataStore(MetadataStore):
    """Keeps ``FileInfo.json`` inside an existing directory."""

    def __init__(self, target_path: str, clock: Clock = utc_now):
        if not target_path or not os.path.isdir(target_path):
            raise ConfigurationError(f"Metadata directory does not exist: '{target_path}'")
        self.json_file = os.path.join(target_path, JSON_FILENAME)
        self._clock = clock

    def create_file_info(self, record: FileRecord, user_id: str) -> Result[FileRecord]:
        user_check = check_user_id(user_id, "create_file_info")
        if not user_check.is_success:
            return copy_failure(user_check)

        now = self._clock()
        record.created = now
        record.created_by = user_id
        record.last_modified = now
        record.last_modified_by = user_id

        read_result = self._read_list_of_files()
        if not read_result.is_success:
            return copy_failure(read_result)
        records = read_result.data

        # Not clever, but ids are never reused while the highest one survives
        record.id = max((r.id for r in records), default=0) + 1
        records.append(record)

        write_result = self._write_list_of_files(records)
        if not write_result.is_success:
            return copy_failure(write_result)
        return Result.success(record)

    def update_file_info(self, record: FileRecord, user_id: str) -> Result[FileRecord]:
        user_check = check_user_id(user_id, "update_file_info")
        if not user_check.is_success:
            return copy_failure(user_check)

        read_result = self._read_list_of_files()
        if not read_result.is_success:
            return copy_failure(read_result)
        records = read_result.data

        index = next((i for i, r in enumerate(records) if r.id == record.id), None)
        if index is None:
            return Result.failure_not_found(
                f"Error occurred in 'update_file_info', The error is: "
                f"'The File Id {record.id} is not found in JSON file'."
            )

        record.created = records[index].created
        record.created_by = records[index].created_by
        record.mime_type = records[index].mime_type
        record.last_modified = self._clock()
        record.last_modified_by = user_id
        records[index] = record

        write_result = self._write_list_of_files(records)
        if not write_result.is_success:
            return copy_failure(write_result)
        return Result.success(record)

    def delete_file_info(self, id: int) -> Result[None]:
        read_result = self._read_list_of_files()
        if not read_result.is_success:
            return copy_failure(read_result)

        remaining = [r for r in read_result.data if r.id != id]
        if len(remaining) == len(read_result.data):
            return Result.failure_not_found(
                f"Error occurred in 'delete_file_info', The error is: "
                f"'The File Id {id} is not found in JSON file'."
            )
        return self._write_list_of_files(remaining)

    def get_list_of_file_info_by_parent_key(self, parent_key: str) -> Result[List[FileRecord]]:
        read_result = self._read_list_of_files()
        if not read_result.is_success:
            return copy_failure(read_result)
        return Result.success([r for r in read_result.data if r.parent_key == parent_key])

    def get_file_info_by_id(self, id: int) -> Result[FileRecord]:
        read_result = self._read_list_of_files()
        if not read_result.is_success:
            return copy_failure(read_result)

        record = next((r for r in read_result.data if r.id == id), None)
        if record is None:
            return Result.failure_not_found(
                f"Error occurred in 'get_file_info_by_id', The error is: "
                f"'Record with key '{id}' does not exist'."
            )
        return Result.success(record)

    def _read_list_of_files(self) -> Result[List[FileRecord]]:
        if not os.path.exists(self.json_file):
            return Result.success([])
        try:
            with open(self.json_file, "rb") as f:
                content = f.read()
            if not content.strip():
                return Result.success([])
            return Result.success(_records_adapter.validate_json(content))
        except (OSError, ValidationError):
            logger.critical(
                "Error occurred in '_read_list_of_files()'. Cannot read '%s'.",
                self.json_file,
                exc_info=True,
            )
            return Result.fatal("An error occurred")

    def _write_list_of_files(self, records: List[FileRecord]) -> Result[None]:
        try:
            with open(self.json_file, "wb") as f:
                f.write(_records_adapter.dump_json(records, by_alias=True, indent=2))
            return Result.success()
        except OSError:
            logger.critical(
                "Error occurred in '_write_list_of_files(records)'. Cannot write '%s'.",
                self.json_file,
                exc_info=True,
            )
            return Result.fatal("An error occurred")
