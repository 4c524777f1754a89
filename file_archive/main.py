"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from file_archive.api.file_archive import router as file_archive_router
from file_archive.api.responses import result_response
from file_archive.core.config import settings
from file_archive.core.exceptions import FileArchiveError
from file_archive.core.middleware import setup_middleware
from file_archive.core.result import Result

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("file_archive")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the configured stores once; a bad configuration stops startup."""
    from file_archive.services.factory import get_archive_service, get_blob_store

    logger.info(
        "Starting File Archive API (metadata=%s, storage=%s)",
        settings.FILE_ARCHIVE_METADATA_BACKEND,
        settings.FILE_ARCHIVE_STORAGE_BACKEND,
    )

    if settings.FILE_ARCHIVE_METADATA_BACKEND == "db":
        from file_archive.db.base import Base
        from file_archive.db.session import get_engine
        import file_archive.models  # noqa: F401
        Base.metadata.create_all(bind=get_engine())
        logger.info("Metadata table ready")

    get_archive_service()

    blob_store = get_blob_store()
    if settings.FILE_ARCHIVE_STORAGE_BACKEND == "minio":
        try:
            blob_store.ensure_bucket()
            logger.info("MinIO bucket ready")
        except Exception as e:
            logger.warning(f"MinIO not available: {e}")

    yield

    logger.info("Shutting down File Archive API")


app = FastAPI(
    title="File Archive API",
    description="Attach, list and download files belonging to a parent record",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

setup_middleware(app)


@app.exception_handler(FileArchiveError)
async def file_archive_exception_handler(request: Request, exc: FileArchiveError):
    logger.critical("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return result_response(Result.fatal("An error occurred."))


app.include_router(file_archive_router, prefix="/api")


@app.get("/api/health")
async def health():
    """Quick health check endpoint."""
    return {"status": "ok"}
