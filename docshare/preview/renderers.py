"""Renderer adapters: one view-model per RenderStrategy."""
import logging
from typing import Optional

from docshare.errors import DocShareError
from docshare.models.schemas import DocumentRef, RenderedPreview, RenderStrategy
from docshare.preview.classify import file_extension
from docshare.preview.fetchers import DEFAULT_MAX_ROWS, fetch_csv, fetch_text
from docshare.preview.resource import BlobStore, PreviewResource
from docshare.utils.formatting import format_file_size

logger = logging.getLogger(__name__)

OFFICE_INFO = {
    "doc": {"icon": "bi-file-earmark-word", "type": "Microsoft Word Document", "color": "#1f5694"},
    "docx": {"icon": "bi-file-earmark-word", "type": "Microsoft Word Document", "color": "#1f5694"},
    "xlsx": {"icon": "bi-file-earmark-excel", "type": "Microsoft Excel Spreadsheet", "color": "#0f7b0f"},
}
OFFICE_DEFAULT = {"icon": "bi-file-earmark", "type": "Office Document", "color": "#6c757d"}


def _display_size(resource: PreviewResource, doc: Optional[DocumentRef]) -> str:
    size = doc.file_size if doc and doc.file_size else resource.size
    return format_file_size(size) if size else "Unknown"


def office_info(extension: str) -> dict:
    info = dict(OFFICE_INFO.get(extension.lower(), OFFICE_DEFAULT))
    # "Microsoft Word Document" -> "Download Word File"
    words = info["type"].split(" ")
    info["download_label"] = f"Download {words[1] if len(words) > 1 else words[0]} File"
    return info


async def render(
    resource: PreviewResource,
    doc: Optional[DocumentRef],
    store: BlobStore,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> RenderedPreview:
    """Build the view-model for a live resource."""
    title = (doc.name if doc else None) or resource.suggested_filename
    kind = resource.strategy
    base = dict(kind=kind, title=title, src=resource.access_url, mime_type=resource.content_type)

    if kind in (RenderStrategy.IMAGE, RenderStrategy.PDF, RenderStrategy.AUDIO, RenderStrategy.VIDEO):
        return RenderedPreview(**base)

    if kind == RenderStrategy.TEXT:
        try:
            text = await fetch_text(store, resource.access_url)
        except DocShareError as e:
            logger.error(f"Failed to load text content for {title}: {e.message}")
            return RenderedPreview(**base, message=f"Failed to load text content: {e.message}")
        return RenderedPreview(**base, text=text)

    if kind == RenderStrategy.CSV:
        try:
            table = await fetch_csv(store, resource.access_url, max_rows=max_rows)
        except DocShareError as e:
            logger.error(f"Failed to load CSV content for {title}: {e.message}")
            return RenderedPreview(**base, message=f"Failed to load CSV content: {e.message}")
        if not table.header:
            return RenderedPreview(**base, table=table, message="No data found in CSV file")
        return RenderedPreview(**base, table=table)

    if kind == RenderStrategy.OFFICE:
        ext = file_extension(title)
        return RenderedPreview(
            **base,
            details={**office_info(ext), "size": _display_size(resource, doc)},
            message="Microsoft Office documents cannot be previewed directly in the browser. Please download to view.",
        )

    return RenderedPreview(
        **base,
        details={
            "file": title or "Unknown",
            "type": resource.content_type or "Unknown",
            "size": _display_size(resource, doc),
        },
        message="This file type cannot be previewed. You can download it to view the content.",
    )
