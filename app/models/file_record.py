# app/models/file_record.py
from datetime import datetime, timezone
import enum

from sqlalchemy import BigInteger, Boolean, DateTime, Enum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileCategory(str, enum.Enum):
    pdf = "pdf"
    image = "image"
    video = "video"
    audio = "audio"
    unknown = "unknown"


class RetirementState(str, enum.Enum):
    active = "active"
    bytes_deleted = "bytes_deleted"  # object weg, record nog niet omgezet
    retired = "retired"


class FileRecord(Base):
    __tablename__ = "session_files"
    __table_args__ = (
        Index("ix_session_files_session_created", "session_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    file_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)
    file_name: Mapped[str] = mapped_column(String(1024), nullable=False)
    category: Mapped[FileCategory] = mapped_column(
        Enum(FileCategory, native_enum=False, length=16), nullable=False
    )
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    storage_key: Mapped[str] = mapped_column(String(2048), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    retirement_state: Mapped[RetirementState] = mapped_column(
        Enum(RetirementState, native_enum=False, length=16),
        nullable=False,
        default=RetirementState.active,
    )
    uploaded_by: Mapped[str] = mapped_column(String(255), nullable=False, default="admin")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    @property
    def is_servable(self) -> bool:
        return self.is_active and self.retirement_state == RetirementState.active
