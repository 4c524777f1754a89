import pytest
from typer.testing import CliRunner

from file_archive.cli import app
from file_archive.schemas.schemas import FileInfoUI
from file_archive.services import factory
from file_archive.services.archive_service import ArchiveFileList
from file_archive.services.payload import BytesFilePayload

runner = CliRunner()


@pytest.fixture(autouse=True)
def wired(monkeypatch, archive_service, token_service):
    monkeypatch.setattr(factory, "get_archive_service", lambda: archive_service)
    monkeypatch.setattr(factory, "get_download_token_service", lambda: token_service)


def test_upload_and_list(tmp_path, read_blob):
    source = tmp_path / "notes.txt"
    source.write_bytes(b"hello")

    result = runner.invoke(app, ["upload", "4711", str(source), "--description", "Meeting notes"])
    assert result.exit_code == 0
    assert "Stored 'notes.txt' as id 1" in result.output
    assert read_blob(1) == b"hello"

    result = runner.invoke(app, ["list", "4711"])
    assert result.exit_code == 0
    assert "[1] notes.txt (text/plain) Meeting notes" in result.output


def test_upload_too_large_fails(tmp_path):
    source = tmp_path / "big.bin"
    source.write_bytes(b"x" * 4096)

    result = runner.invoke(app, ["upload", "4711", str(source)])

    assert result.exit_code == 1


def test_upload_missing_file_fails(tmp_path):
    result = runner.invoke(app, ["upload", "4711", str(tmp_path / "nope.txt")])
    assert result.exit_code == 1


def test_delete_requires_confirmation(archive_service):
    entry = FileInfoUI(filename="a.txt", insert=True, file=BytesFilePayload("a.txt", b"a"))
    archive_service.create_update_delete_archive_from_ui("4711", ArchiveFileList([entry]), "cli")

    result = runner.invoke(app, ["delete", "4711"], input="n\n")
    assert result.exit_code != 0
    assert len(archive_service.get_list_of_file_info_ui_for_archive("4711").data) == 1

    result = runner.invoke(app, ["delete", "4711", "--yes"])
    assert result.exit_code == 0
    assert archive_service.get_list_of_file_info_ui_for_archive("4711").data == []


def test_token_prints_download_url(token_service):
    result = runner.invoke(app, ["token", "7", "--user", "42"])

    assert result.exit_code == 0
    url = result.output.strip()
    assert url.startswith("/api/FileArchive/DownloadFile?token=")
    ids = token_service.read_user_id_and_file_id(url.split("token=", 1)[1]).data
    assert (ids.user_id, ids.file_id) == (42, 7)


def test_token_blank_user_fails():
    result = runner.invoke(app, ["token", "7", "--user", " "])
    assert result.exit_code == 1
