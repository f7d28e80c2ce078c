"""
FastAPI application factory for the Bridge dev server.

This module creates the app with:
- CORS configuration for a local frontend
- An InMemoryAuthority seeded from DevServerSettings
- RPC and blob routes
- Error translation to {"error": message} bodies
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sdk.bridge_sdk.errors import BridgeError, ContentReadError, TransportError
from sdk.bridge_sdk.memory import InMemoryAuthority
from sdk.bridge_sdk.types import Identity

from .config import DevServerSettings
from .routes import router

logger = logging.getLogger(__name__)


def create_app(
    authority: InMemoryAuthority | None = None,
    settings: DevServerSettings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or DevServerSettings()
    if authority is None:
        authority = InMemoryAuthority(
            admins=[Identity(p) for p in settings.admins],
            pending_admins=[Identity(p) for p in settings.pending_admins],
        )

    app = FastAPI(
        title="Bridge Dev Server",
        description="In-memory remote authority for local development.",
        version="1.0.0",
    )
    app.state.authority = authority
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(ContentReadError)
    async def content_error(request: Request, exc: ContentReadError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": exc.message})

    @app.exception_handler(TransportError)
    async def transport_error(request: Request, exc: TransportError) -> JSONResponse:
        logger.info(f"{request.url.path} rejected: {exc.message}")
        return JSONResponse(status_code=exc.status_code or 400, content={"error": exc.message})

    @app.exception_handler(BridgeError)
    async def bridge_error(request: Request, exc: BridgeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": exc.message})

    app.include_router(router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "bridge-devserver"}

    return app
