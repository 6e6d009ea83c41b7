# app/services/content.py
"""
Content Server: resolves a record to bytes in the object store and renders
them either inline (view) or as an attachment (download).

Bytes are read into memory per request and never cached in-process.
Inactive (soft-deleted) records are not servable and answer NotFound, their
metadata stays available through the info endpoint.
"""
from dataclasses import dataclass, field
import mimetypes
import re
from typing import Dict, Optional, Tuple
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.aws.s3_ops import ObjectStore, StoredObject
from app.core.errors import NotFound, RangeNotSatisfiable, ValidationError
from app.core.logging_config import get_logger
from app.models.file_record import FileCategory, FileRecord
from app.services.reconciler import get_record
from app.services.s3_keys import filename_from_key

logger = get_logger(__name__)

VIEW = "view"
DOWNLOAD = "download"
MODES = (VIEW, DOWNLOAD)

PDF = "application/pdf"
OCTET_STREAM = "application/octet-stream"

CATEGORY_CONTENT_TYPES = {
    FileCategory.pdf: PDF,
    FileCategory.image: "image/jpeg",
    FileCategory.video: "video/mp4",
    FileCategory.audio: "audio/mpeg",
}

# Range requests alleen voor media (iOS Safari speelt video anders niet af)
STREAMABLE = {FileCategory.video, FileCategory.audio}

_RANGE_RE = re.compile(r"^bytes=(\d*)-(\d*)$")


@dataclass
class ContentResponse:
    body: bytes
    media_type: str
    headers: Dict[str, str] = field(default_factory=dict)
    status_code: int = 200


def guess_content_type(filename: Optional[str], fallback: str = OCTET_STREAM) -> str:
    if not filename:
        return fallback
    ctype, _ = mimetypes.guess_type(filename.lower())
    return ctype or fallback


def resolve_content_type(category: Optional[FileCategory], filename: Optional[str]) -> str:
    """Category mapping first, then extension sniffing, then octet-stream."""
    if category in CATEGORY_CONTENT_TYPES:
        return CATEGORY_CONTENT_TYPES[category]
    return guess_content_type(filename)


def is_pdf(content_type: Optional[str], filename: Optional[str]) -> bool:
    if content_type and content_type.split(";", 1)[0].strip().lower() == PDF:
        return True
    return bool(filename) and filename.lower().endswith(".pdf")


def content_disposition(mode: str, filename: str) -> str:
    if mode != DOWNLOAD:
        return "inline"
    # Header moet latin-1 zijn; quotes/control chars eruit
    cleaned = "".join(ch for ch in filename if ch >= " " and ch != "\x7f")
    cleaned = cleaned.replace("\\", "_").replace('"', "'")
    ascii_name = cleaned.encode("ascii", "ignore").decode("ascii").strip() or "download"
    value = f'attachment; filename="{ascii_name}"'
    if ascii_name != cleaned:
        value += f"; filename*=UTF-8''{quote(cleaned, safe='')}"
    return value


def parse_range(header: Optional[str], total: int) -> Optional[Tuple[int, int]]:
    """
    Parse a single 'bytes=a-b' range against an object of `total` bytes.
    Returns None when the header is absent, malformed or multi-range (serve
    the full body), raises RangeNotSatisfiable when it cannot be satisfied.
    """
    if not header:
        return None
    m = _RANGE_RE.match(header.strip().replace(" ", ""))
    if not m:
        return None
    first, last = m.group(1), m.group(2)
    if not first and not last:
        return None

    if not first:
        # suffix range: laatste N bytes
        suffix = int(last)
        if suffix == 0 or total == 0:
            raise RangeNotSatisfiable("Requested range not satisfiable", details={"size": total})
        return max(total - suffix, 0), total - 1

    start = int(first)
    end = int(last) if last else total - 1
    if start >= total or (last and end < start):
        raise RangeNotSatisfiable("Requested range not satisfiable", details={"size": total})
    return start, min(end, total - 1)


class ContentServer:
    def __init__(
        self,
        store: ObjectStore,
        *,
        view_cache_max_age: int = 3600,
        proxy_cache_max_age: int = 31536000,
    ):
        self.store = store
        self.view_cache_max_age = view_cache_max_age
        self.proxy_cache_max_age = proxy_cache_max_age

    def _check_mode(self, mode: str) -> None:
        if mode not in MODES:
            raise ValidationError(f"mode must be one of {', '.join(MODES)}")

    def _base_headers(self, mode: str, content_type: str, filename: str) -> Dict[str, str]:
        headers = {"Content-Disposition": content_disposition(mode, filename)}
        if mode == VIEW:
            headers["X-Content-Type-Options"] = "nosniff"
            headers["Accept-Ranges"] = "bytes"
        return headers

    def load_servable(self, db: Session, record_id: str) -> FileRecord:
        record = get_record(db, record_id)
        if not record.is_servable:
            logger.info(
                "serve_inactive_record",
                record_id=record_id,
                state=record.retirement_state.value,
            )
            raise NotFound("File not found", details={"record_id": record_id})
        return record

    def serve(
        self,
        db: Session,
        record_id: str,
        mode: str,
        *,
        range_header: Optional[str] = None,
    ) -> ContentResponse:
        self._check_mode(mode)
        record = self.load_servable(db, record_id)

        content_type = resolve_content_type(record.category, record.file_name)
        if mode == VIEW and is_pdf(content_type, record.file_name):
            # inline PDF viewers willen exact application/pdf
            content_type = PDF

        if mode == VIEW and range_header and record.category in STREAMABLE:
            partial = self._serve_range(record, content_type, range_header)
            if partial is not None:
                return partial

        obj = self.store.get_object(record.storage_key)
        if record.size_bytes != len(obj.body):
            logger.warning(
                "size_mismatch",
                record_id=record.id,
                stored_size=record.size_bytes,
                actual_size=len(obj.body),
            )

        headers = self._base_headers(mode, content_type, record.file_name)
        headers["Content-Length"] = str(len(obj.body))
        if mode == VIEW:
            headers["Cache-Control"] = f"public, max-age={self.view_cache_max_age}"

        logger.info("file_served", record_id=record.id, mode=mode, size=len(obj.body))
        return ContentResponse(body=obj.body, media_type=content_type, headers=headers)

    def _serve_range(
        self, record: FileRecord, content_type: str, range_header: str
    ) -> Optional[ContentResponse]:
        head = self.store.head_object(record.storage_key)
        total = int(head.get("ContentLength", 0))
        byte_range = parse_range(range_header, total)
        if byte_range is None:
            return None

        start, end = byte_range
        obj: StoredObject = self.store.get_object(
            record.storage_key, byte_range=f"bytes={start}-{end}"
        )
        headers = self._base_headers(VIEW, content_type, record.file_name)
        headers.update(
            {
                "Content-Range": f"bytes {start}-{end}/{total}",
                "Content-Length": str(len(obj.body)),
                "Cache-Control": f"public, max-age={self.view_cache_max_age}",
            }
        )
        logger.info("file_range_served", record_id=record.id, start=start, end=end, total=total)
        return ContentResponse(
            body=obj.body, media_type=content_type, headers=headers, status_code=206
        )

    def serve_raw(self, storage_key: str, mode: str = VIEW) -> ContentResponse:
        """
        Proxy path: straight from storage, no metadata lookup. Keys are
        immutable per upload, so the response may be cached for a long time.
        """
        self._check_mode(mode)
        if not storage_key or ".." in storage_key.split("/"):
            raise NotFound("File not found")

        obj = self.store.get_object(storage_key)
        filename = filename_from_key(storage_key)
        content_type = obj.content_type or guess_content_type(filename)
        if mode == VIEW and is_pdf(content_type, filename):
            content_type = PDF

        headers = self._base_headers(mode, content_type, filename)
        headers["X-Content-Type-Options"] = "nosniff"
        headers["Accept-Ranges"] = "bytes"
        headers["Content-Length"] = str(len(obj.body))
        headers["Cache-Control"] = f"public, max-age={self.proxy_cache_max_age}, immutable"

        logger.info("file_proxied", storage_key=storage_key, mode=mode, size=len(obj.body))
        return ContentResponse(body=obj.body, media_type=content_type, headers=headers)
