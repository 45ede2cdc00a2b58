"""Fetching a shared document once and wrapping it as a PreviewResource."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from docshare.backend.api import PublicAPI, disposition_filename
from docshare.errors import EmptyBody, NotShareable
from docshare.models.schemas import DocumentRef
from docshare.preview.classify import (
    GENERIC_CONTENT_TYPE,
    classify,
    file_extension,
    is_generic,
    needs_content,
    normalize_content_type,
)
from docshare.preview.resource import BlobStore, PreviewResource

logger = logging.getLogger(__name__)

PLACEHOLDER_FILENAME = "file"


def sharing_handle_id(handle: str) -> str:
    """A handle may arrive as a full share URL; only its last segment is the id."""
    handle = handle.strip().rstrip("/")
    return handle.rsplit("/", 1)[-1] if "/" in handle else handle


class PreviewAcquirer:
    """Turns a DocumentRef into a PreviewResource with exactly one fetch."""

    def __init__(self, public_api: PublicAPI, store: BlobStore):
        self.public_api = public_api
        self.store = store

    async def acquire(self, doc: DocumentRef) -> PreviewResource:
        if not doc.sharing_handle:
            raise NotShareable()

        handle = sharing_handle_id(doc.sharing_handle)
        response = await self.public_api.shared_document(handle)
        data = response.content

        header_type = response.headers.get("content-type")
        content_type = normalize_content_type(header_type)
        if is_generic(content_type) and doc.file_type:
            content_type = normalize_content_type(doc.file_type)
        content_type = content_type or GENERIC_CONTENT_TYPE

        suggested = (
            disposition_filename(response.headers.get("content-disposition", ""))
            or doc.name
            or PLACEHOLDER_FILENAME
        )
        name_for_type = doc.name if file_extension(doc.name) else suggested
        strategy = classify(content_type, name_for_type)

        if not data and needs_content(strategy):
            raise EmptyBody(f"'{doc.name}' returned no content to preview")

        access_url = self.store.create(data, content_type, suggested)
        logger.info(
            f"Acquired preview for document {doc.id}: {len(data)} bytes, "
            f"type={content_type}, strategy={strategy.value}, url={access_url}"
        )
        return PreviewResource(
            store=self.store,
            access_url=access_url,
            content_type=content_type,
            suggested_filename=suggested,
            strategy=strategy,
            size=len(data),
        )


@asynccontextmanager
async def with_preview(acquirer: PreviewAcquirer, doc: DocumentRef) -> AsyncIterator[PreviewResource]:
    """
    Scoped acquisition: the resource is released however the block exits.

        async with with_preview(acquirer, doc) as resource:
            ...
    """
    resource = await acquirer.acquire(doc)
    try:
        yield resource
    finally:
        resource.release()
