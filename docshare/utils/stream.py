from typing import Iterator, Optional
from urllib.parse import quote
from fastapi.responses import StreamingResponse

CHUNK_SIZE = 64 * 1024


def _chunks(data: bytes) -> Iterator[bytes]:
    for start in range(0, len(data), CHUNK_SIZE):
        yield data[start:start + CHUNK_SIZE]


def stream_bytes(
    data: bytes,
    media_type: Optional[str],
    filename: Optional[str] = None,
    attachment: bool = False,
    status_code: int = 200,
) -> StreamingResponse:
    """
    Stream an in-memory body to the browser in fixed-size chunks.
    With `attachment=True` the browser is told to save it as `filename`.
    """
    headers = {"Content-Length": str(len(data))}
    if filename:
        disposition = "attachment" if attachment else "inline"
        headers["Content-Disposition"] = f"{disposition}; filename*=UTF-8''{quote(filename)}"
    return StreamingResponse(
        _chunks(data),
        media_type=media_type or "application/octet-stream",
        headers=headers,
        status_code=status_code,
    )
