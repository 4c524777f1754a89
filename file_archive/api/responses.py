"""Translate Results and stored files into HTTP responses."""

from typing import BinaryIO, Iterator, Optional
from urllib.parse import quote

from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from file_archive.core.result import Result
from file_archive.schemas.schemas import ResultOut

CHUNK_SIZE = 64 * 1024


def result_response(result: Result) -> JSONResponse:
    """Render a Result as the JSON envelope with its code as HTTP status."""
    return JSONResponse(
        status_code=int(result.result_code),
        content=ResultOut.from_result(result).model_dump(by_alias=True),
    )


def plain_text_response(result: Result) -> PlainTextResponse:
    """First message as a bare text body; browsers show it to the user as-is."""
    return PlainTextResponse(
        result.messages[0] if result.messages else "",
        status_code=int(result.result_code),
    )


def content_disposition(filename: str, disposition: str = "attachment") -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"{disposition}; filename*=utf-8''{quoted}"
    return f'{disposition}; filename="{filename}"'


def _iter_stream(stream: BinaryIO) -> Iterator[bytes]:
    try:
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        stream.close()


def stored_file_response(stream: BinaryIO, mime_type: Optional[str], filename: str) -> StreamingResponse:
    """Stream a stored file; the stream is closed when sending ends, however it ends."""
    return StreamingResponse(
        _iter_stream(stream),
        media_type=mime_type or "application/octet-stream",
        headers={"Content-Disposition": content_disposition(filename)},
        # Covers responses that are never iterated (client gone before the body)
        background=BackgroundTask(stream.close),
    )
