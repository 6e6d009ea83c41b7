# app/services/lifecycle.py
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.aws.s3_ops import ObjectStore
from app.core.errors import PersistenceError
from app.core.logging_config import get_logger
from app.models.file_record import FileRecord, RetirementState
from app.services.reconciler import get_record

logger = get_logger(__name__)


class LifecycleManager:
    """
    Retirement is a persisted two-step transition:

        active -> bytes_deleted -> retired

    The object is hard-deleted first; only then is the record flipped to
    inactive. It is never removed from the table. A crash after the storage
    delete leaves the record in bytes_deleted (not servable) and calling
    retire() again finishes the job.
    """

    def __init__(self, store: ObjectStore):
        self.store = store

    def _persist(self, db: Session, record: FileRecord, step: str) -> None:
        try:
            db.commit()
            db.refresh(record)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("retire_persist_failed", record_id=record.id, step=step, exc=type(e).__name__)
            raise PersistenceError(f"Failed to update file record: {type(e).__name__}") from e

    def retire(self, db: Session, record_id: str) -> FileRecord:
        record = get_record(db, record_id)

        if record.retirement_state == RetirementState.retired:
            logger.info("retire_noop", record_id=record_id)
            return record

        if record.retirement_state == RetirementState.active:
            # StorageUnavailable hier => record blijft ongemoeid
            self.store.delete_object(record.storage_key)
            record.retirement_state = RetirementState.bytes_deleted
            self._persist(db, record, "bytes_deleted")
            logger.info("retire_bytes_deleted", record_id=record_id, storage_key=record.storage_key)

        record.is_active = False
        record.retirement_state = RetirementState.retired
        self._persist(db, record, "retired")

        logger.info("file_retired", record_id=record_id, session_id=record.session_id)
        return record
