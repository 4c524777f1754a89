import pytest

from file_archive.core.result import ResultCode
from file_archive.services.payload import BytesFilePayload
from file_archive.services.upload_policy import UploadPolicy, parse_file_types

ABORTED = "The upload is aborted. Please reselect files and try again."


def test_parse_file_types():
    assert parse_file_types(" .JPG, .png ,, ") == [".jpg", ".png"]
    assert parse_file_types("") == []


def test_no_restrictions_accepts_anything():
    policy = UploadPolicy(max_file_size=100)
    assert policy.check([BytesFilePayload("a.exe", b"x" * 100)], existing_count=500).is_success


def test_rejects_file_type():
    policy = UploadPolicy(max_file_size=100, accepted_file_types=".jpg,.png")

    result = policy.check([BytesFilePayload("photo.JPG", b"x"), BytesFilePayload("notes.txt", b"x")])

    assert result.result_code == ResultCode.BAD_REQUEST
    assert result.messages == [
        "The file 'notes.txt' is not of an allowed file type. Allowed types are: .jpg, .png.",
        ABORTED,
    ]


def test_rejects_declared_size():
    policy = UploadPolicy(max_file_size=10)
    result = policy.check([BytesFilePayload("big.bin", b"x" * 11)])
    assert result.messages[0] == "The file 'big.bin' is too large. The max file size is 10 bytes."


def test_rejects_too_many_files():
    policy = UploadPolicy(max_file_size=10, max_files=3)

    assert policy.check([BytesFilePayload("a", b"x")], existing_count=2).is_success
    result = policy.check([BytesFilePayload("a", b"x"), BytesFilePayload("b", b"x")], existing_count=2)
    assert "There can be a max of 3 files" in result.messages[0]


def test_reports_every_problem():
    policy = UploadPolicy(max_file_size=10, accepted_file_types=".pdf", max_files=1)
    result = policy.check([BytesFilePayload("a.txt", b"x" * 20), BytesFilePayload("b.pdf", b"x")])
    assert len(result.messages) == 4
    assert result.messages[-1] == ABORTED


@pytest.mark.parametrize("kwargs", [{"max_file_size": 0}, {"max_file_size": 10, "max_files": -1}])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        UploadPolicy(**kwargs)
