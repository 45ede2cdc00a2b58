"""Secondary fetchers reading a preview's bytes back through its access URL."""
import logging
from typing import List

from docshare.errors import DecodeError, FetchError
from docshare.models.schemas import CsvTable
from docshare.preview.resource import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 50


async def fetch_text(store: BlobStore, access_url: str) -> str:
    """Read the bytes behind `access_url` as UTF-8 text."""
    blob = store.get(access_url)
    if blob is None:
        # a revoked object URL behaves like a missing resource
        raise FetchError(404)
    try:
        return blob.data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        logger.warning(f"{access_url} is not valid UTF-8: {e}")
        raise DecodeError(f"Failed to load text content: not valid UTF-8 ({e.reason})") from e


def parse_csv_line(line: str) -> List[str]:
    """
    Split one CSV line into trimmed fields.

    A double quote flips the in-quotes state and is dropped; commas inside
    quotes are literal. Doubled quotes ("") are not unescaped.
    """
    values = []
    current = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    values.append("".join(current).strip())
    return values


def parse_csv(text: str) -> List[List[str]]:
    rows = [row for row in text.split("\n") if row.strip()]
    return [parse_csv_line(row) for row in rows]


def build_csv_table(rows: List[List[str]], max_rows: int = DEFAULT_MAX_ROWS) -> CsvTable:
    """First row is the header; at most `max_rows` data rows are kept."""
    if not rows:
        return CsvTable(header=[], rows=[], total_rows=0)

    header = [cell or f"Column {i + 1}" for i, cell in enumerate(rows[0])]
    data_rows = rows[1:]
    width = len(header)
    shown = [
        [row[i] if i < len(row) else "" for i in range(width)]
        for row in data_rows[:max_rows]
    ]
    hidden = max(len(data_rows) - max_rows, 0)
    return CsvTable(
        header=header,
        rows=shown,
        total_rows=len(data_rows),
        hidden_rows=hidden,
        truncated=hidden > 0,
        notice=f"Showing first {max_rows} rows of {len(data_rows)} total rows" if hidden else None,
    )


async def fetch_csv(store: BlobStore, access_url: str, max_rows: int = DEFAULT_MAX_ROWS) -> CsvTable:
    text = await fetch_text(store, access_url)
    return build_csv_table(parse_csv(text), max_rows=max_rows)
