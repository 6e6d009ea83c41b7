# app/routers/uploads.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_direct_uploader, get_grant_issuer, get_reconciler
from app.schemas.files import FileRecordView
from app.schemas.uploads import FinalizeRequest, GrantRequest, GrantResponse
from app.services.direct_upload import DirectUploader
from app.services.grants import GrantIssuer
from app.services.reconciler import MetadataReconciler

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/grant", response_model=GrantResponse)
def create_upload_grant(
    body: GrantRequest,
    issuer: GrantIssuer = Depends(get_grant_issuer),
):
    """
    Presigned PUT voor directe upload naar de object store.
    Er wordt niets opgeslagen; pas /uploads/finalize maakt een record.
    """
    grant = issuer.issue(
        file_name=body.file_name,
        mime_type=body.mime_type,
        size_bytes=body.size_bytes,
        session_id=body.session_id,
    )
    return GrantResponse(
        presigned_url=grant.presigned_url,
        file_id=grant.file_id,
        storage_key=grant.storage_key,
        expires_at=grant.expires_at,
        expires_in=grant.expires_in,
        headers=grant.headers,
    )


@router.post("/finalize", response_model=FileRecordView)
def finalize_upload(
    body: FinalizeRequest,
    db: Session = Depends(get_db),
    reconciler: MetadataReconciler = Depends(get_reconciler),
):
    # Geen dedup: twee keer finalize = twee records
    finalized = reconciler.finalize(
        db,
        file_id=body.file_id,
        file_name=body.file_name,
        mime_type=body.mime_type,
        size_bytes=body.size_bytes,
        session_id=body.session_id,
        storage_key=body.storage_key,
        uploaded_by=body.uploaded_by,
    )
    return FileRecordView.from_record(finalized.record)


@router.post("/simple", response_model=FileRecordView)
def simple_upload(
    file: UploadFile = File(...),
    session_id: str = Form(..., alias="sessionId", min_length=1),
    uploaded_by: Optional[str] = Form(None, alias="uploadedBy"),
    db: Session = Depends(get_db),
    uploader: DirectUploader = Depends(get_direct_uploader),
):
    """Kleine bestanden in één request: multipart naar de bucket, daarna het record."""
    limit = uploader.max_upload_bytes
    # één byte extra lezen zodat te grote bestanden herkend worden
    body = file.file.read() if limit is None else file.file.read(limit + 1)
    finalized = uploader.upload(
        db,
        file_name=file.filename,
        mime_type=file.content_type,
        body=body,
        session_id=session_id,
        uploaded_by=uploaded_by,
    )
    return FileRecordView.from_record(finalized.record)
