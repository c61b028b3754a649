"""FastAPI application setup for the vector-desk bridge."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vector_desk.api.dependencies import get_app_settings, get_clipboard, get_gateway, get_query_service
from vector_desk.api.errors import register_exception_handlers
from vector_desk.api.routes_collections import router as collections_router
from vector_desk.api.routes_documents import router as documents_router
from vector_desk.api.routes_session import router as session_router
from vector_desk.core.logging import configure_logging

_settings = get_app_settings()
configure_logging(_settings.log_level, use_json=_settings.log_json)

app = FastAPI(
    title="Vector Desk",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:1420",
        "http://localhost:1420",
        "tauri://localhost",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)

app.include_router(collections_router, prefix="", tags=["collections"])
app.include_router(documents_router, prefix="", tags=["documents"])
app.include_router(session_router, prefix="", tags=["session"])


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_gateway()
    get_query_service()
    get_clipboard()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
