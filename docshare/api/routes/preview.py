# docshare/api/routes/preview.py
import logging
from fastapi import APIRouter, Depends, HTTPException

from docshare.auth.gate import authenticated
from docshare.deps import Services, get_services
from docshare.errors import DocShareError, NotShareable, to_http
from docshare.models.schemas import PreviewSnapshot
from docshare.preview.renderers import render
from docshare.preview.view import ViewState
from docshare.utils.stream import stream_bytes

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/preview", tags=["preview"])


async def _snapshot(services: Services) -> PreviewSnapshot:
    view = services.preview
    snap = view.snapshot()
    if view.state == ViewState.READY and view.resource is not None:
        snap.rendered = await render(
            view.resource, view.document, services.blobs, max_rows=services.settings.csv_preview_rows
        )
    return snap


@router.get("", response_model=PreviewSnapshot, dependencies=[Depends(authenticated)])
async def current_preview(services: Services = Depends(get_services)):
    return await _snapshot(services)


@router.delete("", response_model=PreviewSnapshot, dependencies=[Depends(authenticated)])
def close_preview(services: Services = Depends(get_services)):
    services.preview.close()
    return services.preview.snapshot()


@router.get("/download", dependencies=[Depends(authenticated)])
def download_preview(services: Services = Depends(get_services)):
    """Save the file currently shown, from the bytes already fetched."""
    resource = services.preview.resource
    blob = services.blobs.get(resource.access_url) if resource else None
    if blob is None:
        raise HTTPException(status_code=404, detail="Nothing is being previewed")
    return stream_bytes(blob.data, blob.content_type, resource.suggested_filename, attachment=True)


@router.get("/blobs/{blob_id}")
def serve_blob(blob_id: str, services: Services = Depends(get_services)):
    """Object URL endpoint; stops resolving once the resource is released."""
    blob = services.blobs.get(blob_id)
    if blob is None:
        raise HTTPException(status_code=404, detail="Preview resource has been released")
    return stream_bytes(blob.data, blob.content_type, blob.filename)


@router.post("/{document_id}", response_model=PreviewSnapshot, dependencies=[Depends(authenticated)])
async def open_preview(document_id: str, services: Services = Depends(get_services)):
    """
    Open `document_id` in the preview pane. A newer call made while this one
    is still loading wins; this call then reports the newer state.
    """
    view = services.preview
    # the request order, not the metadata round trip, decides who wins
    generation = view.begin()
    try:
        doc = await services.documents.get(document_id)
        if not doc.sharing_handle:
            raise NotShareable()
    except DocShareError as e:
        view.abandon(generation)
        raise to_http(e, "Failed to load file preview")

    await view.open(doc, generation)
    return await _snapshot(services)
