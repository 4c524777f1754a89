"""Pydantic schemas for stored records, UI operations and API serialization.

Python code stays snake_case; JSON (the flat metadata file and the API)
is camelCase.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from file_archive.core.clock import as_utc
from file_archive.core.result import Result
from file_archive.services.payload import FilePayload


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase, outputs camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---- Stored metadata ----
class FileRecord(CamelModel):
    """Metadata about one archived file. ``id`` is assigned by the store."""

    id: int = 0
    filename: str = Field(..., min_length=1, max_length=250)
    mime_type: Optional[str] = Field(None, max_length=128)
    description: Optional[str] = Field(None, max_length=250)
    parent_key: Optional[str] = Field(None, max_length=50)
    created: Optional[datetime] = None
    created_by: str = Field("", max_length=50)
    last_modified: Optional[datetime] = None
    last_modified_by: Optional[str] = Field(None, max_length=50)

    @field_validator("created", "last_modified")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


# ---- UI operations ----
class FileInfoUIBase(CamelModel):
    id: Optional[int] = None
    filename: str = ""
    mime_type: Optional[str] = None
    description: Optional[str] = None
    parent_key: Optional[str] = None
    created: Optional[datetime] = None
    created_by: Optional[str] = None
    last_modified: Optional[datetime] = None
    last_modified_by: Optional[str] = None
    # Pending changes; at most one should be set
    insert: bool = False
    update: bool = False
    delete: bool = False


class FileInfoUI(FileInfoUIBase):
    """A file as held by the UI, with the change the user asked for.

    ``file`` is only present for inserts and is never serialized.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    file: Optional[FilePayload] = Field(None, exclude=True)


class FileInfoUIOut(FileInfoUIBase):
    release_at: Optional[datetime] = None


class FileListOut(CamelModel):
    files: List[FileInfoUIOut]


# ---- Download ----
class DownloadTokenRequest(CamelModel):
    file_id: int = Field(..., gt=0)


class DownloadTokenOut(CamelModel):
    token: str
    url: str


# ---- Errors ----
class ResultOut(CamelModel):
    """JSON envelope for a failed (or message-carrying) Result."""
    result_code: int
    is_success: bool
    messages: List[str] = []

    @classmethod
    def from_result(cls, result: Result) -> "ResultOut":
        return cls(
            result_code=int(result.result_code),
            is_success=result.is_success,
            messages=result.messages,
        )
