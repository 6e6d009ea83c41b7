# app/schemas/files.py
from datetime import datetime

from app.models.file_record import FileRecord
from app.schemas.uploads import CamelModel
from app.services.reconciler import download_url, view_url


class FileRecordView(CamelModel):
    id: str
    name: str
    type: str
    size: int
    upload_date: datetime
    session_id: str
    url: str
    download_url: str
    is_active: bool

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileRecordView":
        return cls(
            id=record.id,
            name=record.file_name,
            type=record.category.value,
            size=record.size_bytes,
            upload_date=record.created_at,
            session_id=record.session_id,
            url=view_url(record.id),
            download_url=download_url(record.id),
            is_active=record.is_active,
        )


class DeleteResponse(CamelModel):
    message: str
    id: str
