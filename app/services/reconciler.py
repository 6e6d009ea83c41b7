# app/services/reconciler.py
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFound, PersistenceError, ValidationError
from app.core.logging_config import get_logger
from app.models.file_record import FileCategory, FileRecord, RetirementState
from app.services.validation import require_fields
from app.services.s3_keys import new_record_id

logger = get_logger(__name__)

# Alle documenttypes worden als 'pdf' opgeslagen (bestaande data verwacht dat)
DOCUMENT_MIME_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "text/csv",
    "application/rtf",
    "application/vnd.oasis.opendocument.text",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}
DOCUMENT_EXTENSIONS = (
    ".pdf", ".doc", ".docx", ".txt", ".csv", ".rtf", ".odt",
    ".xls", ".xlsx", ".ppt", ".pptx",
)


def classify_mime(mime_type: Optional[str], file_name: Optional[str] = None) -> FileCategory:
    mime = (mime_type or "").strip().lower()
    if "pdf" in mime:
        return FileCategory.pdf
    if "image" in mime:
        return FileCategory.image
    if "video" in mime:
        return FileCategory.video
    if "audio" in mime:
        return FileCategory.audio
    if mime.split(";", 1)[0].strip() in DOCUMENT_MIME_TYPES:
        return FileCategory.pdf
    if file_name and file_name.lower().endswith(DOCUMENT_EXTENSIONS):
        return FileCategory.pdf
    return FileCategory.unknown


def view_url(record_id: str) -> str:
    return f"/files/{record_id}/view"


def download_url(record_id: str) -> str:
    return f"/files/{record_id}/download"


@dataclass
class FinalizedUpload:
    record: FileRecord
    view_url: str
    download_url: str


def get_record(db: Session, record_id: str) -> FileRecord:
    try:
        record = db.get(FileRecord, record_id)
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to load file record: {type(e).__name__}") from e
    if record is None:
        raise NotFound("File not found", details={"record_id": record_id})
    return record


class MetadataReconciler:
    """
    Turns a client-reported completed upload into a FileRecord.

    There is no idempotency key: finalizing the same fileId twice creates two
    records that point at the same bytes. Callers that need dedup can check
    find_by_file_id() first.
    """

    def __init__(self, *, uploaded_by: str = "admin"):
        self.uploaded_by = uploaded_by

    def finalize(
        self,
        db: Session,
        *,
        file_id: str,
        file_name: str,
        mime_type: str,
        size_bytes: int,
        session_id: str,
        storage_key: str,
        uploaded_by: Optional[str] = None,
    ) -> FinalizedUpload:
        require_fields(
            fileId=file_id,
            fileName=file_name,
            mimeType=mime_type,
            sizeBytes=size_bytes,
            sessionId=session_id,
            storageKey=storage_key,
        )
        if size_bytes < 0:
            raise ValidationError("sizeBytes must be >= 0")

        category = classify_mime(mime_type, file_name)
        if category is FileCategory.unknown:
            logger.warning("unknown_mime_category", mime_type=mime_type, file_name=file_name)

        record = FileRecord(
            id=new_record_id(),
            file_id=file_id,
            session_id=session_id,
            file_name=file_name,
            category=category,
            size_bytes=int(size_bytes),
            storage_key=storage_key,
            is_active=True,
            retirement_state=RetirementState.active,
            uploaded_by=uploaded_by or self.uploaded_by,
        )
        try:
            db.add(record)
            db.commit()
            db.refresh(record)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("finalize_failed", file_id=file_id, exc=type(e).__name__)
            raise PersistenceError(f"Upload finalization failed: {type(e).__name__}") from e

        logger.info(
            "upload_finalized",
            record_id=record.id,
            file_id=file_id,
            session_id=session_id,
            category=category.value,
        )
        return FinalizedUpload(
            record=record,
            view_url=view_url(record.id),
            download_url=download_url(record.id),
        )

    def find_by_file_id(self, db: Session, file_id: str) -> List[FileRecord]:
        try:
            stmt = (
                select(FileRecord)
                .where(FileRecord.file_id == file_id)
                .order_by(FileRecord.created_at.asc())
            )
            return list(db.scalars(stmt))
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to look up file id: {type(e).__name__}") from e

    def list_for_session(
        self, db: Session, session_id: str, *, include_inactive: bool = False
    ) -> List[FileRecord]:
        stmt = select(FileRecord).where(FileRecord.session_id == session_id)
        if not include_inactive:
            stmt = stmt.where(FileRecord.is_active.is_(True))
        stmt = stmt.order_by(FileRecord.created_at.desc(), FileRecord.id.desc())
        try:
            return list(db.scalars(stmt))
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to fetch files: {type(e).__name__}") from e
