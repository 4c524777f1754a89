import json
import os

import pytest

from file_archive.core.exceptions import ConfigurationError
from file_archive.core.result import ResultCode
from file_archive.schemas.schemas import FileRecord
from file_archive.services.blob_folder import FolderBlobStore
from file_archive.services.metadata_json import JSON_FILENAME
from file_archive.services.payload import BytesFilePayload

from conftest import MAX_FILE_SIZE


@pytest.fixture
def record(json_store):
    """A metadata record created at the clock's current time."""
    info = FileRecord(filename="MyFile.jpg", mime_type="image/jpeg", parent_key="4711")
    json_store.create_file_info(info, "8888-9999")
    return info


def _read_all(stream) -> bytes:
    with stream:
        return stream.read()


class TestStore:

    def test_store_and_open(self, blob_store, record, read_blob):
        content = b"\xff\xd8\xff" + b"x" * 100
        result = blob_store.store_file(record.id, BytesFilePayload("MyFile.jpg", content))

        assert result.is_success
        assert read_blob(record.id) == content

        opened = blob_store.open_stored_file(record.id)
        assert opened.is_success
        assert _read_all(opened.data) == content

    def test_store_overwrites(self, blob_store, record, read_blob):
        blob_store.store_file(record.id, BytesFilePayload("a", b"first"))
        blob_store.store_file(record.id, BytesFilePayload("a", b"second"))
        assert read_blob(record.id) == b"second"

    def test_exact_max_size_is_accepted(self, blob_store, record, read_blob):
        content = b"a" * MAX_FILE_SIZE
        assert blob_store.store_file(record.id, BytesFilePayload("a", content)).is_success
        assert read_blob(record.id) == content

    def test_declared_too_large_is_rejected(self, blob_store, record, blob_dir):
        payload = BytesFilePayload("big.bin", b"a" * (MAX_FILE_SIZE + 1))
        result = blob_store.store_file(record.id, payload)

        assert result.result_code == ResultCode.BAD_REQUEST
        assert "'big.bin'" in result.messages[0]
        assert os.listdir(blob_dir) == []

    def test_undeclared_too_large_is_rejected(self, blob_store, record, blob_dir):
        # Declares a small size but delivers more
        payload = BytesFilePayload("liar.bin", b"a" * (MAX_FILE_SIZE * 3), size=10)
        result = blob_store.store_file(record.id, payload)

        assert result.result_code == ResultCode.BAD_REQUEST
        assert os.listdir(blob_dir) == []

    def test_rejected_upload_keeps_previous_content(self, blob_store, record, read_blob):
        blob_store.store_file(record.id, BytesFilePayload("a", b"original"))
        blob_store.store_file(record.id, BytesFilePayload("a", b"a" * (MAX_FILE_SIZE + 1), size=1))
        assert read_blob(record.id) == b"original"


class TestReleaseGate:

    @pytest.fixture
    def delayed_store(self, blob_dir, json_store, clock):
        return FolderBlobStore(blob_dir, json_store, MAX_FILE_SIZE, seconds_before_release=60, clock=clock)

    def test_forbidden_before_release(self, delayed_store, record):
        delayed_store.store_file(record.id, BytesFilePayload("a", b"content"))

        result = delayed_store.open_stored_file(record.id)

        assert result.result_code == ResultCode.FORBIDDEN
        assert result.messages == [
            f"The file with Id {record.id}, has not yet been released. "
            "It will be released at 2024-05-01T12:01:00+00:00."
        ]

    def test_still_forbidden_one_second_early(self, delayed_store, record, clock):
        delayed_store.store_file(record.id, BytesFilePayload("a", b"content"))
        clock.advance(59)
        assert delayed_store.open_stored_file(record.id).result_code == ResultCode.FORBIDDEN

    def test_released_after_delay(self, delayed_store, record, clock):
        delayed_store.store_file(record.id, BytesFilePayload("a", b"content"))
        clock.advance(60)

        result = delayed_store.open_stored_file(record.id)

        assert result.is_success
        assert _read_all(result.data) == b"content"

    def test_zero_delay_opens_immediately(self, blob_store, record):
        blob_store.store_file(record.id, BytesFilePayload("a", b"content"))
        assert blob_store.open_stored_file(record.id).is_success

    def test_open_without_metadata_is_not_found(self, blob_store):
        assert blob_store.open_stored_file(999).result_code == ResultCode.NOT_FOUND

    def test_record_without_created_time_is_server_error(self, blob_store, metadata_dir):
        # Hand-edited metadata file that lost the created time
        with open(os.path.join(metadata_dir, JSON_FILENAME), "w") as f:
            json.dump([{"id": 5, "filename": "edited.txt", "parentKey": "4711", "createdBy": "x"}], f)

        result = blob_store.open_stored_file(5)

        assert result.result_code == ResultCode.SERVER_ERROR
        assert result.messages == ["An error occurred"]

    def test_open_without_content_is_server_error(self, blob_store, record):
        result = blob_store.open_stored_file(record.id)
        assert result.result_code == ResultCode.SERVER_ERROR


class TestDelete:

    def test_delete_removes_content(self, blob_store, record, blob_dir):
        blob_store.store_file(record.id, BytesFilePayload("a", b"content"))
        assert blob_store.delete_stored_file(record.id).is_success
        assert os.listdir(blob_dir) == []

    def test_delete_missing_is_success(self, blob_store):
        assert blob_store.delete_stored_file(4711).is_success


class TestConfiguration:

    def test_requires_existing_directory(self, tmp_path, json_store):
        with pytest.raises(ConfigurationError):
            FolderBlobStore(str(tmp_path / "nope"), json_store, MAX_FILE_SIZE)

    @pytest.mark.parametrize("size", [0, -1])
    def test_max_file_size_must_be_positive(self, blob_store, size):
        with pytest.raises(ValueError, match="max_file_size is 0 or less"):
            blob_store.set_max_file_size(size)

    def test_max_file_size_can_change(self, blob_store):
        blob_store.set_max_file_size(5)
        assert blob_store.max_file_size == 5

    def test_negative_release_delay_rejected(self, blob_dir, json_store):
        with pytest.raises(ValueError):
            FolderBlobStore(blob_dir, json_store, MAX_FILE_SIZE, seconds_before_release=-1)

    def test_close_stored_file(self, blob_store, record):
        blob_store.store_file(record.id, BytesFilePayload("a", b"content"))
        stream = blob_store.open_stored_file(record.id).data

        assert blob_store.close_stored_file(stream).is_success
        assert stream.closed
