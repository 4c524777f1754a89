"""Models package; import all models so metadata.create_all can discover them."""

from file_archive.models.file_archive_info import FileArchiveInfo

__all__ = ["FileArchiveInfo"]
