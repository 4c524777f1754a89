"""Metadata store backed by the ``file_archive_info`` table.

Every call runs in its own session and transaction, so the database
provides isolation between concurrent requests and processes.
"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from file_archive.core.clock import Clock, as_utc, utc_now
from file_archive.core.result import Result, copy_failure
from file_archive.models.file_archive_info import FileArchiveInfo
from file_archive.schemas.schemas import FileRecord
from file_archive.services.metadata_store import MetadataStore, check_user_id

logger = logging.getLogger("file_archive")


class DbMetadataStore(MetadataStore):
    """Table-backed metadata; suitable for multi-process production use."""

    def __init__(self, session_factory: sessionmaker, clock: Clock = utc_now):
        self._session_factory = session_factory
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

        try:
            with self._session_factory() as db:
                row = FileArchiveInfo(**record.model_dump(exclude={"id"}))
                db.add(row)
                db.commit()
                record.id = row.id
            return Result.success(record)
        except SQLAlchemyError:
            logger.critical("Error in 'create_file_info(record, %r)'.", user_id, exc_info=True)
            return Result.fatal("An error occurred")

    def update_file_info(self, record: FileRecord, user_id: str) -> Result[FileRecord]:
        user_check = check_user_id(user_id, "update_file_info")
        if not user_check.is_success:
            return copy_failure(user_check)

        try:
            with self._session_factory() as db:
                row = db.get(FileArchiveInfo, record.id)
                if row is None:
                    return Result.failure_not_found(
                        f"Error occurred in 'update_file_info', The error is: "
                        f"'file_archive_info record with id '{record.id}' is not found'."
                    )

                record.created = as_utc(row.created)
                record.created_by = row.created_by
                record.mime_type = row.mime_type
                record.last_modified = self._clock()
                record.last_modified_by = user_id

                row.filename = record.filename
                row.description = record.description
                row.parent_key = record.parent_key
                row.last_modified = record.last_modified
                row.last_modified_by = record.last_modified_by
                db.commit()
            return Result.success(record)
        except SQLAlchemyError:
            logger.critical("Error in 'update_file_info(record, %r)'.", user_id, exc_info=True)
            return Result.fatal("An error occurred")

    def delete_file_info(self, id: int) -> Result[None]:
        try:
            with self._session_factory() as db:
                row = db.get(FileArchiveInfo, id)
                if row is None:
                    return Result.failure_not_found(
                        f"Error occurred in 'delete_file_info', The error is: "
                        f"'file_archive_info record with id '{id}' is not found'."
                    )
                db.delete(row)
                db.commit()
            return Result.success()
        except SQLAlchemyError:
            logger.critical("Error in 'delete_file_info(%s)'.", id, exc_info=True)
            return Result.fatal("An error occurred")

    def get_list_of_file_info_by_parent_key(self, parent_key: str) -> Result[List[FileRecord]]:
        try:
            with self._session_factory() as db:
                rows = (
                    db.query(FileArchiveInfo)
                    .filter(FileArchiveInfo.parent_key == parent_key)
                    .order_by(FileArchiveInfo.filename, FileArchiveInfo.id)
                    .all()
                )
                return Result.success([FileRecord.model_validate(r) for r in rows])
        except SQLAlchemyError:
            logger.critical("Error in 'get_list_of_file_info_by_parent_key(%r)'.", parent_key, exc_info=True)
            return Result.fatal("An error occurred")

    def get_file_info_by_id(self, id: int) -> Result[FileRecord]:
        try:
            with self._session_factory() as db:
                row = db.get(FileArchiveInfo, id)
                if row is None:
                    return Result.failure_not_found(
                        f"Error occurred in 'get_file_info_by_id', The error is: "
                        f"'Record with key '{id}' does not exist'."
                    )
                return Result.success(FileRecord.model_validate(row))
        except SQLAlchemyError:
            logger.critical("Error in 'get_file_info_by_id(%s)'.", id, exc_info=True)
            return Result.fatal("An error occurred")
