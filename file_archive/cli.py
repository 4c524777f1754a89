"""File Archive CLI tool (fa-ctl)."""

import os
from typing import Optional

import typer

app = typer.Typer(name="fa-ctl", help="File Archive CLI")
db_app = typer.Typer(help="Metadata database commands")
app.add_typer(db_app, name="db")


def _fail(messages) -> None:
    for message in messages:
        typer.echo(f"❌ {message}", err=True)
    raise typer.Exit(code=1)


@db_app.command("create")
def db_create():
    """Create the MySQL database named in DATABASE_URL if it doesn't exist."""
    import pymysql
    from sqlalchemy.engine import make_url
    from file_archive.core.config import settings

    url = make_url(settings.DATABASE_URL)
    conn = pymysql.connect(
        host=url.host or "localhost",
        port=url.port or 3306,
        user=url.username,
        password=url.password or "",
    )
    try:
        cursor = conn.cursor()
        cursor.execute(
            f"CREATE DATABASE IF NOT EXISTS `{url.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
        typer.echo(f"✅ Database '{url.database}' created (or already exists)")
    finally:
        conn.close()


@db_app.command("init")
def db_init():
    """Create the file_archive_info table."""
    from file_archive.db.base import Base
    from file_archive.db.session import get_engine
    import file_archive.models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
    typer.echo("✅ Table 'file_archive_info' ready")


@app.command("upload")
def upload_file(
    parent_key: str = typer.Argument(..., help="Parent key to store the file under"),
    file_path: str = typer.Argument(..., help="Path to file to upload"),
    description: Optional[str] = typer.Option(None, help="Description of the file"),
    user: str = typer.Option("cli", help="User id recorded as creator"),
):
    """Add a local file to the archive."""
    from file_archive.schemas.schemas import FileInfoUI
    from file_archive.services.archive_service import ArchiveFileList
    from file_archive.services.factory import get_archive_service
    from file_archive.services.payload import LocalFilePayload

    if not os.path.isfile(file_path):
        _fail([f"File not found: {file_path}"])

    payload = LocalFilePayload(file_path)
    entry = FileInfoUI(filename=payload.name, description=description, insert=True, file=payload)
    result = get_archive_service().create_update_delete_archive_from_ui(parent_key, ArchiveFileList([entry]), user)
    if not result.is_success:
        _fail(result.messages)
    typer.echo(f"✅ Stored '{entry.filename}' as id {entry.id}")


@app.command("list")
def list_files(parent_key: str = typer.Argument(..., help="Parent key")):
    """List the files stored under a parent key."""
    from file_archive.services.factory import get_archive_service

    result = get_archive_service().get_list_of_file_info_ui_for_archive(parent_key)
    if not result.is_success:
        _fail(result.messages)
    for f in result.data:
        typer.echo(f"  [{f.id}] {f.filename} ({f.mime_type or '-'}) {f.description or ''}".rstrip())


@app.command("delete")
def delete_archive(
    parent_key: str = typer.Argument(..., help="Parent key"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete every file stored under a parent key."""
    if not yes and not typer.confirm(f"⚠️  Delete all files under '{parent_key}'?"):
        raise typer.Abort()
    from file_archive.services.factory import get_archive_service

    result = get_archive_service().delete_archive_by_parent_key(parent_key)
    if not result.is_success:
        _fail(result.messages)
    typer.echo(f"✅ Archive '{parent_key}' deleted")


@app.command("token")
def create_token(
    file_id: int = typer.Argument(..., help="File id to download"),
    user: str = typer.Option(..., help="Numeric user id the token is issued to"),
):
    """Mint a download credential and print the download URL."""
    from file_archive.services.factory import get_download_token_service

    service = get_download_token_service()
    result = service.build_token_for_file_download(user, file_id)
    if not result.is_success:
        _fail(result.messages)
    typer.echo(service.download_url(result.data))


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Host"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(True, help="Auto-reload"),
):
    """Start the FastAPI development server."""
    import uvicorn
    uvicorn.run("file_archive.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
