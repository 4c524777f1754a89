"""Database engine and session factory for the table-backed metadata store."""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from file_archive.core.config import settings


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; pool tuning only applies to server databases."""
    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=echo,
    )


@lru_cache
def get_engine() -> Engine:
    # Built on first use so importing the package never touches the database
    return build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@lru_cache
def get_session_factory() -> sessionmaker:
    return build_session_factory(get_engine())
