from __future__ import annotations

from fastapi import Request

from app.core.settings import Settings, settings
from app.services.object_store import ObjectStore


def get_settings() -> Settings:
    return settings


def get_object_store(request: Request) -> ObjectStore:
    """The store built at startup (app.state); built lazily if startup did not run."""
    store = getattr(request.app.state, "object_store", None)
    if store is None:
        store = ObjectStore.from_settings(settings)
        request.app.state.object_store = store
    return store
