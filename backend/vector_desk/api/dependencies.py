"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from vector_desk.core.config import Settings, get_settings
from vector_desk.gateway.base import VectorStoreGateway
from vector_desk.gateway.chroma import ChromaGateway
from vector_desk.query.service import QueryService
from vector_desk.session.clipboard import Clipboard
from vector_desk.session.documents import DocumentsView
from vector_desk.session.workspace import Workspace

_GATEWAY: VectorStoreGateway | None = None
_QUERY_SERVICE: QueryService | None = None
_CLIPBOARD: Clipboard | None = None
_WORKSPACES: dict[str, Workspace] = {}


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_gateway() -> VectorStoreGateway:
    global _GATEWAY
    if _GATEWAY is None:
        _GATEWAY = ChromaGateway(get_app_settings())
    return _GATEWAY


def get_query_service() -> QueryService:
    global _QUERY_SERVICE
    if _QUERY_SERVICE is None:
        _QUERY_SERVICE = QueryService(gateway=get_gateway(), settings=get_app_settings())
    return _QUERY_SERVICE


def get_clipboard() -> Clipboard:
    global _CLIPBOARD
    if _CLIPBOARD is None:
        _CLIPBOARD = Clipboard()
    return _CLIPBOARD


def connected_profiles() -> list[str]:
    return list(_WORKSPACES)


async def get_workspace(profile_id: str) -> Workspace:
    """Workspace of a profile, connecting it on first use."""
    workspace = _WORKSPACES.get(profile_id)
    if workspace is not None:
        return workspace
    profile = get_app_settings().get_profile(profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    await get_gateway().connect(profile)
    workspace = Workspace(get_query_service(), profile_id, clipboard=get_clipboard())
    _WORKSPACES[profile_id] = workspace
    return workspace


async def close_workspace(profile_id: str) -> bool:
    workspace = _WORKSPACES.pop(profile_id, None)
    if workspace is None:
        return False
    workspace.close_collection()
    await get_gateway().disconnect(profile_id)
    return True


async def get_documents_view(profile_id: str, collection_name: str) -> DocumentsView:
    workspace = await get_workspace(profile_id)
    return workspace.open_collection(collection_name)


def reset_state() -> None:
    """Drop every singleton; used between tests."""
    global _GATEWAY, _QUERY_SERVICE, _CLIPBOARD
    get_settings.cache_clear()
    get_app_settings.cache_clear()
    _GATEWAY = None
    _QUERY_SERVICE = None
    _CLIPBOARD = None
    _WORKSPACES.clear()


__all__ = [
    "get_app_settings",
    "get_gateway",
    "get_query_service",
    "get_clipboard",
    "get_workspace",
    "get_documents_view",
    "close_workspace",
    "connected_profiles",
    "reset_state",
]
