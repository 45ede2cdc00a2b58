import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docshare.config import Settings, get_settings
from docshare.deps import build_services
from docshare.api.routes.session import router as session_router
from docshare.api.routes.documents import router as files_router
from docshare.api.routes.documents import public_router as shared_router
from docshare.api.routes.documents import dashboard_router
from docshare.api.routes.preview import router as preview_router
from docshare.api.routes.admin import router as admin_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the front server. `transport` replaces the network under httpx,
    which is how tests stand in for the backend.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    services = build_services(settings, transport=transport)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"DocShare front server ({settings.app_env}) using backend {settings.api_url}")
        yield
        await services.aclose()

    app = FastAPI(
        title="DocShare",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS middleware
    origins = [o.strip() for o in (settings.cors_origins or "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "env": settings.app_env,
            "backend": settings.api_url,
            "authenticated": services.session.is_authenticated(),
            "live_previews": len(services.blobs),
        }

    # Router registration -------------------------------------------------------
    app.include_router(session_router)
    app.include_router(dashboard_router)
    app.include_router(files_router)
    app.include_router(shared_router)
    app.include_router(preview_router)
    app.include_router(admin_router)
    return app


app = create_app()
