# app/routers/files.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Header, Query, Response
from sqlalchemy.orm import Session

from app.dependencies import get_content_server, get_db, get_lifecycle, get_reconciler
from app.schemas.files import DeleteResponse, FileRecordView
from app.services.content import DOWNLOAD, VIEW, ContentResponse, ContentServer
from app.services.lifecycle import LifecycleManager
from app.services.reconciler import MetadataReconciler, get_record

router = APIRouter(prefix="/files", tags=["files"])


def _to_response(content: ContentResponse) -> Response:
    return Response(
        content=content.body,
        status_code=content.status_code,
        media_type=content.media_type,
        headers=content.headers,
    )


# Proxy route eerst, anders matcht /files/{session_id} niet-bedoeld
@router.get("/proxy/{storage_key:path}")
def proxy_file(
    storage_key: str,
    action: Literal["view", "download"] = Query(VIEW),
    content: ContentServer = Depends(get_content_server),
):
    """Raw bytes straight from storage, keyed by storage key (no metadata lookup)."""
    return _to_response(content.serve_raw(storage_key, action))


@router.get("/{record_id}/info", response_model=FileRecordView)
def file_info(record_id: str, db: Session = Depends(get_db)):
    # ook inactieve records: metadata blijft opvraagbaar voor audit
    return FileRecordView.from_record(get_record(db, record_id))


@router.get("/{record_id}/view")
def view_file(
    record_id: str,
    range_header: Optional[str] = Header(None, alias="Range"),
    db: Session = Depends(get_db),
    content: ContentServer = Depends(get_content_server),
):
    return _to_response(content.serve(db, record_id, VIEW, range_header=range_header))


@router.get("/{record_id}/download")
def download_file(
    record_id: str,
    db: Session = Depends(get_db),
    content: ContentServer = Depends(get_content_server),
):
    return _to_response(content.serve(db, record_id, DOWNLOAD))


@router.get("/{session_id}", response_model=List[FileRecordView])
def list_session_files(
    session_id: str,
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
    reconciler: MetadataReconciler = Depends(get_reconciler),
):
    """Files of a session, newest first."""
    records = reconciler.list_for_session(db, session_id, include_inactive=include_inactive)
    return [FileRecordView.from_record(r) for r in records]


@router.delete("/{record_id}", response_model=DeleteResponse)
def delete_file(
    record_id: str,
    db: Session = Depends(get_db),
    lifecycle: LifecycleManager = Depends(get_lifecycle),
):
    record = lifecycle.retire(db, record_id)
    return DeleteResponse(message="File deleted successfully", id=record.id)
