# docshare/deps.py
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Request

from docshare.auth.session import SessionContext, TokenStore
from docshare.backend.api import AdminAPI, AuthAPI, DocumentAPI, PublicAPI
from docshare.backend.client import BackendClient
from docshare.config import Settings
from docshare.preview.acquire import PreviewAcquirer
from docshare.preview.resource import BlobStore
from docshare.preview.view import PreviewView


@dataclass
class Services:
    """Everything a page needs, wired once per front-server process."""
    settings: Settings
    session: SessionContext
    backend: BackendClient
    auth: AuthAPI
    documents: DocumentAPI
    public: PublicAPI
    admin: AdminAPI
    blobs: BlobStore
    acquirer: PreviewAcquirer
    preview: PreviewView

    async def aclose(self) -> None:
        self.preview.close()
        await self.backend.aclose()


def build_services(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> Services:
    session = SessionContext(TokenStore(settings.token_store_path))
    session.restore()
    backend = BackendClient(session, settings.api_url, timeout=settings.request_timeout, transport=transport)
    public = PublicAPI(backend)
    blobs = BlobStore(settings.blob_url_prefix)
    acquirer = PreviewAcquirer(public, blobs)
    return Services(
        settings=settings,
        session=session,
        backend=backend,
        auth=AuthAPI(backend),
        documents=DocumentAPI(backend),
        public=public,
        admin=AdminAPI(backend),
        blobs=blobs,
        acquirer=acquirer,
        preview=PreviewView(acquirer),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_session(request: Request) -> SessionContext:
    return request.app.state.services.session
