# app/services/direct_upload.py
from typing import Optional

from sqlalchemy.orm import Session

from app.aws.s3_ops import ObjectStore
from app.core.errors import ValidationError
from app.core.logging_config import get_logger
from app.services.reconciler import FinalizedUpload, MetadataReconciler
from app.services.s3_keys import build_session_file_key, new_file_id, object_metadata
from app.services.validation import require_fields, require_session_id

logger = get_logger(__name__)

OCTET_STREAM = "application/octet-stream"


class DirectUploader:
    """
    Server-side upload for small files: bytes go through this process to the
    object store, then the record is created exactly like /uploads/finalize.
    Same key layout and object metadata as a presigned grant.
    """

    def __init__(
        self,
        store: ObjectStore,
        reconciler: MetadataReconciler,
        *,
        max_upload_bytes: Optional[int] = None,
    ):
        self.store = store
        self.reconciler = reconciler
        self.max_upload_bytes = max_upload_bytes

    def upload(
        self,
        db: Session,
        *,
        file_name: str,
        mime_type: Optional[str],
        body: bytes,
        session_id: str,
        uploaded_by: Optional[str] = None,
    ) -> FinalizedUpload:
        require_fields(fileName=file_name, sessionId=session_id)
        require_session_id(session_id)
        if self.max_upload_bytes is not None and len(body) > self.max_upload_bytes:
            raise ValidationError(
                f"file too large for direct upload; max={self.max_upload_bytes} bytes",
                details={"max_bytes": self.max_upload_bytes},
            )
        mime_type = mime_type or OCTET_STREAM

        file_id = new_file_id()
        key = build_session_file_key(session_id, file_id, file_name)
        self.store.put_object(
            key,
            body,
            content_type=mime_type,
            metadata=object_metadata(session_id, file_name, file_id),
        )
        logger.info("direct_upload_stored", session_id=session_id, file_id=file_id, size=len(body))

        # Faalt de insert, dan blijft het object als orphan staan (zelfde als bij grants)
        return self.reconciler.finalize(
            db,
            file_id=file_id,
            file_name=file_name,
            mime_type=mime_type,
            size_bytes=len(body),
            session_id=session_id,
            storage_key=key,
            uploaded_by=uploaded_by,
        )
