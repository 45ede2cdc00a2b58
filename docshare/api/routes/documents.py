# docshare/api/routes/documents.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from docshare.auth.gate import admin_only, authenticated
from docshare.auth.validation import require_confirmation
from docshare.backend.api import disposition_filename
from docshare.deps import Services, get_services
from docshare.errors import DocShareError, to_http
from docshare.models.schemas import DashboardStats, DocumentEditForm, DocumentRef, ShareForm
from docshare.preview.acquire import sharing_handle_id
from docshare.preview.classify import file_icon
from docshare.utils.formatting import filter_documents, format_file_size
from docshare.utils.stream import stream_bytes

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/files", tags=["files"], dependencies=[Depends(authenticated)])
public_router = APIRouter(tags=["shared"])
dashboard_router = APIRouter(tags=["dashboard"], dependencies=[Depends(authenticated)])

RECENT_FILES = 5


# ---------- helpers ----------
def _row(doc: DocumentRef) -> Dict[str, Any]:
    """List-view shape: the document plus what the table shows next to it."""
    row = doc.model_dump(by_alias=True, mode="json")
    row["icon"] = file_icon(doc.file_type)
    row["sizeDisplay"] = format_file_size(doc.file_size)
    row["previewable"] = doc.sharing_handle is not None
    return row


def _recent(docs: List[DocumentRef], limit: int = RECENT_FILES) -> List[DocumentRef]:
    dated = [d for d in docs if d.created_at is not None]
    undated = [d for d in docs if d.created_at is None]
    dated.sort(key=lambda d: d.created_at, reverse=True)
    return (dated + undated)[:limit]


# ---------- dashboard ----------
@dashboard_router.get("/dashboard", response_model=DashboardStats)
async def dashboard(services: Services = Depends(get_services)):
    try:
        my_files, team_files = await asyncio.gather(
            services.documents.my_documents(),
            services.documents.team_documents(),
        )
    except DocShareError as e:
        raise to_http(e, "Failed to fetch dashboard data")

    total_size = sum(d.file_size for d in my_files)
    return DashboardStats(
        my_files_count=len(my_files),
        team_files_count=len(team_files),
        total_size=total_size,
        total_size_display=format_file_size(total_size),
        recent_files=_recent(my_files + team_files),
    )


# ---------- lists ----------
@router.get("/mine")
async def my_files(q: str = Query("", description="Filter on name/description"),
                   services: Services = Depends(get_services)):
    """My files; administrators see every document instead."""
    try:
        if services.session.is_admin():
            docs = await services.admin.all_documents()
        else:
            docs = await services.documents.my_documents()
    except DocShareError as e:
        raise to_http(e, "Failed to fetch documents")
    return [_row(d) for d in filter_documents(docs, q)]


@router.get("/team")
async def team_files(q: str = Query("", description="Filter on name/description/owner"),
                     services: Services = Depends(get_services)):
    try:
        if services.session.is_admin():
            docs = await services.admin.team_documents()
        else:
            docs = await services.documents.team_documents()
    except DocShareError as e:
        raise to_http(e, "Failed to fetch team documents")
    return [_row(d) for d in filter_documents(docs, q, include_owner=True)]


@router.get("/search")
async def search_files(q: str = Query(..., min_length=1), services: Services = Depends(get_services)):
    try:
        docs = await services.documents.search(q)
    except DocShareError as e:
        raise to_http(e, "Search failed")
    return [_row(d) for d in docs]


# ---------- single document ----------
@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    description: str = Form(""),
    team_shared: bool = Form(False),
    services: Services = Depends(get_services),
):
    if not file.filename:
        raise HTTPException(status_code=422, detail="Please select a file to upload")
    content = await file.read()
    try:
        doc = await services.documents.upload(
            filename=file.filename,
            content=content,
            content_type=file.content_type,
            name=(name or "").strip() or file.filename,
            description=description,
            team_shared=team_shared,
        )
    except DocShareError as e:
        raise to_http(e, "Failed to upload document")
    return {"message": "Document uploaded successfully!", "document": _row(doc) if doc else None}


@router.get("/{document_id}")
async def get_file(document_id: str, services: Services = Depends(get_services)):
    try:
        doc = await services.documents.get(document_id)
    except DocShareError as e:
        raise to_http(e, "Failed to fetch document")
    return _row(doc)


@router.get("/{document_id}/download")
async def download_file(document_id: str, services: Services = Depends(get_services)):
    try:
        response = await services.documents.download(document_id)
    except DocShareError as e:
        raise to_http(e, "Failed to download document")
    filename = disposition_filename(response.headers.get("content-disposition", "")) or f"document-{document_id}"
    logger.info(f"Downloading document {document_id} as {filename} ({len(response.content)} bytes)")
    return stream_bytes(response.content, response.headers.get("content-type"), filename, attachment=True)


@router.post("/{document_id}/share")
async def share_file(document_id: str, form: ShareForm, services: Services = Depends(get_services)):
    try:
        await services.documents.share(document_id, form)
    except DocShareError as e:
        raise to_http(e, "Failed to update sharing settings")
    return {"message": "Document sharing settings updated!", "sharedWithUsers": form.users()}


@router.put("/{document_id}")
async def edit_file(document_id: str, form: DocumentEditForm, services: Services = Depends(get_services)):
    try:
        await services.documents.update(document_id, form)
    except DocShareError as e:
        raise to_http(e, "Failed to update document")
    return {"message": "Document updated successfully!"}


@router.delete("/team/{document_id}", dependencies=[Depends(admin_only)])
async def delete_team_file(document_id: str, confirm: bool = Query(False),
                           services: Services = Depends(get_services)):
    try:
        require_confirmation(confirm, "this team document")
        await services.admin.delete_team_document(document_id)
    except DocShareError as e:
        raise to_http(e, "Failed to delete team document")
    logger.info(f"Admin deleted team document {document_id}")
    return {"message": "Team document deleted successfully!"}


@router.delete("/{document_id}")
async def delete_file(document_id: str, confirm: bool = Query(False),
                      services: Services = Depends(get_services)):
    try:
        require_confirmation(confirm, "this document")
        await services.documents.delete(document_id)
    except DocShareError as e:
        raise to_http(e, "Failed to delete document")
    logger.info(f"Deleted document {document_id}")
    return {"message": "Document deleted successfully!"}


# ---------- anonymous share links ----------
@public_router.get("/shared/{handle}")
async def download_shared(handle: str, services: Services = Depends(get_services)):
    """Anonymous download through a sharing handle; no session needed."""
    try:
        response = await services.public.shared_document(sharing_handle_id(handle))
    except DocShareError as e:
        raise to_http(e, "Failed to download shared document")
    filename = disposition_filename(response.headers.get("content-disposition", "")) or "file"
    return stream_bytes(response.content, response.headers.get("content-type"), filename, attachment=True)
