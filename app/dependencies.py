# app/dependencies.py
from __future__ import annotations

from typing import Iterator

from fastapi import Request
from sqlalchemy.orm import Session

from app.services.content import ContentServer
from app.services.direct_upload import DirectUploader
from app.services.folders import FolderRegistry
from app.services.grants import GrantIssuer
from app.services.lifecycle import LifecycleManager
from app.services.reconciler import MetadataReconciler


def get_db(request: Request) -> Iterator[Session]:
    """Eén sessie per request, uit de factory die in de lifespan is gebouwd."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_grant_issuer(request: Request) -> GrantIssuer:
    return request.app.state.grant_issuer


def get_reconciler(request: Request) -> MetadataReconciler:
    return request.app.state.reconciler


def get_direct_uploader(request: Request) -> DirectUploader:
    return request.app.state.direct_uploader


def get_content_server(request: Request) -> ContentServer:
    return request.app.state.content_server


def get_lifecycle(request: Request) -> LifecycleManager:
    return request.app.state.lifecycle


def get_folder_registry(request: Request) -> FolderRegistry:
    return request.app.state.folders
