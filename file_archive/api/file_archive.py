"""File archive API router: download, download tokens, list, batch apply, delete.

Route handlers are plain ``def`` so the blocking store calls run in the
thread pool and concurrent requests do not wait on each other.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import TypeAdapter, ValidationError

from file_archive.api.responses import plain_text_response, result_response, stored_file_response
from file_archive.core.clock import release_time
from file_archive.core.result import Result, ResultCode
from file_archive.core.security import get_current_user_id
from file_archive.schemas.schemas import (
    DownloadTokenOut, DownloadTokenRequest, FileInfoUI, FileInfoUIOut, FileListOut, ResultOut,
)
from file_archive.services.archive_service import ArchiveFileList, ArchiveService
from file_archive.services.blob_store import BlobStore
from file_archive.services.download_token import DownloadTokenService
from file_archive.services.factory import (
    get_archive_service, get_blob_store, get_download_token_service, get_metadata_store, get_upload_policy,
)
from file_archive.services.metadata_store import MetadataStore
from file_archive.services.payload import UploadFilePayload
from file_archive.services.upload_policy import UploadPolicy

logger = logging.getLogger("file_archive")

router = APIRouter(prefix="/FileArchive", tags=["file-archive"])

_operations_adapter = TypeAdapter(List[FileInfoUI])


def _to_out(files: List[FileInfoUI], seconds_before_release: int) -> FileListOut:
    return FileListOut(files=[
        FileInfoUIOut(
            **f.model_dump(),
            release_at=release_time(f.created, seconds_before_release) if f.created else None,
        )
        for f in files
    ])


@router.get("/DownloadFile")
def download_file(
    token: str = Query(""),
    metadata_store: MetadataStore = Depends(get_metadata_store),
    blob_store: BlobStore = Depends(get_blob_store),
    token_service: DownloadTokenService = Depends(get_download_token_service),
):
    """Download a file. The token names the user and the file."""
    try:
        ids_result = token_service.read_user_id_and_file_id(token)
        if not ids_result.is_success:
            return result_response(ids_result)

        ids = ids_result.data
        if ids.user_id == 0 or ids.file_id == 0:
            logger.error("Error in 'download_file'. The error is: 'User id or File id not present in token'.")
            return result_response(Result.failure_bad_request("User id or File id not present in token"))

        # Authorization of ids.user_id for this file belongs to the hosting application

        info_result = metadata_store.get_file_info_by_id(ids.file_id)
        if not info_result.is_success:
            return result_response(info_result)
        info = info_result.data

        open_result = blob_store.open_stored_file(ids.file_id)
        if not open_result.is_success:
            # Not yet released: the browser tab shows this text to the user
            if open_result.result_code == ResultCode.FORBIDDEN:
                return plain_text_response(open_result)
            return result_response(open_result)

        return stored_file_response(open_result.data, info.mime_type, info.filename)
    except Exception:
        logger.critical("Error in 'download_file'.", exc_info=True)
        return result_response(Result.fatal("An error occurred."))


@router.post("/DownloadToken", response_model=DownloadTokenOut)
def create_download_token(
    body: DownloadTokenRequest,
    user_id: str = Depends(get_current_user_id),
    token_service: DownloadTokenService = Depends(get_download_token_service),
):
    """Mint a download credential for the calling user."""
    token_result = token_service.build_token_for_file_download(user_id, body.file_id)
    if not token_result.is_success:
        return result_response(token_result)
    return DownloadTokenOut(token=token_result.data, url=token_service.download_url(token_result.data))


@router.get("/Files", response_model=FileListOut)
def list_files(
    parent_key: str = Query(..., alias="parentKey", max_length=50),
    archive_service: ArchiveService = Depends(get_archive_service),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Files stored under a parent key, with their release time."""
    list_result = archive_service.get_list_of_file_info_ui_for_archive(parent_key)
    if not list_result.is_success:
        return result_response(list_result)
    return _to_out(list_result.data, blob_store.seconds_before_release)


@router.post("/Files/{parent_key}", response_model=FileListOut)
def apply_changes(
    parent_key: str,
    operations: str = Form("[]"),
    files: List[UploadFile] = File(default=[]),
    user_id: str = Depends(get_current_user_id),
    archive_service: ArchiveService = Depends(get_archive_service),
    blob_store: BlobStore = Depends(get_blob_store),
    upload_policy: UploadPolicy = Depends(get_upload_policy),
):
    """Apply a batch of inserts, updates and deletes for one parent key.

    ``operations`` is a JSON list of files with their pending change.
    Uploaded files attach to insert entries with the same filename; any
    upload left over becomes a new insert.
    """
    if not user_id:
        return result_response(Result.failure_unauthorized("apply_changes: User Id must be supplied"))

    try:
        pending = _operations_adapter.validate_json(operations)
    except ValidationError as e:
        return result_response(Result.failure_bad_request(
            [f"operations: {err['msg']}" for err in e.errors()]
        ))

    uploads = [UploadFilePayload(u) for u in files]
    for op in pending:
        if op.insert and op.file is None:
            match = next((u for u in uploads if u.name == op.filename), None)
            if match is not None:
                op.file = match
                uploads.remove(match)
    pending.extend(FileInfoUI(filename=u.name, insert=True, file=u) for u in uploads)

    existing_result = archive_service.get_list_of_file_info_ui_for_archive(parent_key)
    if not existing_result.is_success:
        return result_response(existing_result)
    deleting = {op.id for op in pending if op.delete and op.id is not None}
    existing_count = len([f for f in existing_result.data if f.id not in deleting])

    policy_result = upload_policy.check([op.file for op in pending if op.insert and op.file is not None], existing_count)
    if not policy_result.is_success:
        return result_response(policy_result)

    file_list = ArchiveFileList(pending)
    apply_result = archive_service.create_update_delete_archive_from_ui(parent_key, file_list, user_id)
    if not apply_result.is_success:
        return result_response(apply_result)
    return _to_out(file_list.files, blob_store.seconds_before_release)


@router.delete("/Files/{parent_key}", response_model=ResultOut)
def delete_archive(
    parent_key: str,
    archive_service: ArchiveService = Depends(get_archive_service),
):
    """Delete every file stored under the parent key."""
    return result_response(archive_service.delete_archive_by_parent_key(parent_key))
