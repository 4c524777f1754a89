"""Attached file payloads.

The archive never sees a web framework's upload object directly; it only
needs a name, a declared content type and size, and a readable stream
that refuses to deliver more than the configured max size.
"""

import io
import mimetypes
import os
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional

from fastapi import UploadFile

from file_archive.core.exceptions import FileTooLargeError


class SizeLimitedStream(io.RawIOBase):
    """Read-through wrapper raising ``FileTooLargeError`` past ``max_bytes``."""

    def __init__(self, inner: BinaryIO, max_bytes: int):
        super().__init__()
        self._inner = inner
        self._max_bytes = max_bytes
        self._read = 0

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        # Ask for one byte beyond the ceiling so an exact-size file still passes
        if size is None or size < 0:
            size = self._max_bytes - self._read + 1
        chunk = self._inner.read(size)
        self._read += len(chunk)
        if self._read > self._max_bytes:
            raise FileTooLargeError(self._max_bytes)
        return chunk

    def readinto(self, buffer) -> int:
        chunk = self.read(len(buffer))
        buffer[:len(chunk)] = chunk
        return len(chunk)

    def close(self) -> None:
        if not self.closed:
            self._inner.close()
        super().close()


class FilePayload(ABC):
    """Raw file attached to an insert operation."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def content_type(self) -> Optional[str]:
        ...

    @property
    @abstractmethod
    def size(self) -> Optional[int]:
        """Declared size in bytes, if known before reading."""
        ...

    @abstractmethod
    def _open(self) -> BinaryIO:
        ...

    def open_read_stream(self, max_bytes: int) -> BinaryIO:
        """Open the content, refusing anything larger than ``max_bytes``."""
        if self.size is not None and self.size > max_bytes:
            raise FileTooLargeError(max_bytes)
        return SizeLimitedStream(self._open(), max_bytes)


class UploadFilePayload(FilePayload):
    """Payload backed by a FastAPI/Starlette ``UploadFile``."""

    def __init__(self, upload: UploadFile):
        self._upload = upload

    @property
    def name(self) -> str:
        return self._upload.filename or "untitled"

    @property
    def content_type(self) -> Optional[str]:
        return self._upload.content_type

    @property
    def size(self) -> Optional[int]:
        return self._upload.size

    def _open(self) -> BinaryIO:
        self._upload.file.seek(0)
        return self._upload.file


class LocalFilePayload(FilePayload):
    """Payload read from a file on disk (CLI uploads)."""

    def __init__(self, path: str, content_type: Optional[str] = None):
        self._path = path
        self._content_type = content_type or mimetypes.guess_type(path)[0]

    @property
    def name(self) -> str:
        return os.path.basename(self._path)

    @property
    def content_type(self) -> Optional[str]:
        return self._content_type

    @property
    def size(self) -> Optional[int]:
        return os.path.getsize(self._path)

    def _open(self) -> BinaryIO:
        return open(self._path, "rb")


class BytesFilePayload(FilePayload):
    """In-memory payload."""

    def __init__(self, name: str, content: bytes, content_type: Optional[str] = None, size: Optional[int] = None):
        self._name = name
        self._content = content
        self._content_type = content_type
        # Declared size may differ from the real one, like a lying client
        self._size = len(content) if size is None else size

    @property
    def name(self) -> str:
        return self._name

    @property
    def content_type(self) -> Optional[str]:
        return self._content_type

    @property
    def size(self) -> Optional[int]:
        return self._size

    def _open(self) -> BinaryIO:
        return io.BytesIO(self._content)
