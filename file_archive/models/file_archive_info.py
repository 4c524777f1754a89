"""File metadata table; the bytes live in the blob store under the same id."""

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, String

from file_archive.db.base import Base


class FileArchiveInfo(Base):
    """One archived file attached to a parent record."""
    __tablename__ = "file_archive_info"

    # BigInteger on server databases, INTEGER on SQLite so autoincrement works
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    filename = Column(String(250), nullable=False)
    mime_type = Column(String(128), nullable=True)
    description = Column(String(250), nullable=True)
    parent_key = Column(String(50), nullable=True)
    created = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(String(50), nullable=False, default="")
    last_modified = Column(DateTime(timezone=True), nullable=True)
    last_modified_by = Column(String(50), nullable=True)

    __table_args__ = (
        Index("ix_parent_key_filename", "parent_key", "filename"),
    )
