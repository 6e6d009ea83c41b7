# app/services/grants.py
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from app.aws.s3_ops import ObjectStore
from app.core.errors import ValidationError
from app.core.logging_config import get_logger
from app.services.s3_keys import build_session_file_key, new_file_id, object_metadata
from app.services.validation import require_fields, require_session_id

logger = get_logger(__name__)

GRANT_EXPIRY_SEC = 600


@dataclass
class UploadGrant:
    """Write capability for exactly one key. Nothing about it is stored server-side."""

    file_id: str
    storage_key: str
    presigned_url: str
    expires_at: datetime
    expires_in: int
    headers: Dict[str, str] = field(default_factory=dict)


class GrantIssuer:
    def __init__(
        self,
        store: ObjectStore,
        *,
        expires_in: int = GRANT_EXPIRY_SEC,
        max_upload_bytes: Optional[int] = None,
    ):
        self.store = store
        self.expires_in = expires_in
        self.max_upload_bytes = max_upload_bytes

    def issue(
        self,
        *,
        file_name: str,
        mime_type: str,
        size_bytes: int,
        session_id: str,
    ) -> UploadGrant:
        require_fields(
            fileName=file_name,
            mimeType=mime_type,
            sizeBytes=size_bytes,
            sessionId=session_id,
        )
        require_session_id(session_id)
        if size_bytes < 0:
            raise ValidationError("sizeBytes must be >= 0")
        if self.max_upload_bytes is not None and size_bytes > self.max_upload_bytes:
            raise ValidationError(
                f"file too large; max={self.max_upload_bytes} bytes",
                details={"max_bytes": self.max_upload_bytes},
            )

        file_id = new_file_id()
        key = build_session_file_key(session_id, file_id, file_name)
        issued_at = datetime.now(timezone.utc)

        # Metadata komt op het object zelf terecht (x-amz-meta-*), voor audit
        url = self.store.presign_put(
            key,
            content_type=mime_type,
            metadata=object_metadata(session_id, file_name, file_id),
            expires_in=self.expires_in,
        )

        logger.info(
            "grant_issued",
            session_id=session_id,
            file_id=file_id,
            storage_key=key,
            size_hint=size_bytes,
        )
        return UploadGrant(
            file_id=file_id,
            storage_key=key,
            presigned_url=url,
            expires_at=issued_at + timedelta(seconds=self.expires_in),
            expires_in=self.expires_in,
            headers={"Content-Type": mime_type},
        )
