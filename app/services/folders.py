# app/services/folders.py
"""
Folder Registry: named session folders per student, with at most one active
folder per student.

The invariant lives in the database (partial unique index on student_id
WHERE is_active). Every state change runs as a single transaction that first
deactivates the student's current active folder and then activates or
inserts the target. A concurrent writer that slips in between makes our
commit fail with an IntegrityError; the transaction is then replayed.
"""
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFound, PersistenceError, ValidationError
from app.core.logging_config import get_logger
from app.infra.retry import retry_on
from app.models.session_folder import SessionFolder
from app.services.s3_keys import new_folder_id

logger = get_logger(__name__)

T = TypeVar("T")

MIN_NAME_LENGTH = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _deactivate_others(db: Session, student_id: str, now: datetime, keep_id: Optional[str] = None) -> int:
    stmt = (
        update(SessionFolder)
        .where(SessionFolder.student_id == student_id)
        .where(SessionFolder.is_active.is_(True))
    )
    if keep_id is not None:
        stmt = stmt.where(SessionFolder.id != keep_id)
    result = db.execute(
        stmt.values(is_active=False, updated_at=now).execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


class FolderRegistry:
    def __init__(self, *, conflict_retries: int = 3):
        self.conflict_retries = max(1, conflict_retries)

    # ------------------------------------------------------------------
    # transaction helpers
    # ------------------------------------------------------------------
    def _in_tx(self, db: Session, fn: Callable[[], T], op: str) -> T:
        try:
            return fn()
        except IntegrityError as e:
            db.rollback()
            logger.warning("folder_conflict", op=op)
            raise ConflictError(
                "Concurrent update of the active folder, please retry",
                details={"op": op},
            ) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("folder_persist_failed", op=op, exc=type(e).__name__)
            raise PersistenceError(f"Failed to {op} session folder: {type(e).__name__}") from e
        except Exception:
            db.rollback()
            raise

    def _with_retry(self, db: Session, fn: Callable[[], T], op: str) -> T:
        return retry_on(
            lambda: self._in_tx(db, fn, op),
            retry_on_exc=(ConflictError,),
            attempts=self.conflict_retries,
        )

    def _reload(self, db: Session, folder_id: str) -> SessionFolder:
        stmt = (
            select(SessionFolder)
            .where(SessionFolder.id == folder_id)
            .execution_options(populate_existing=True)
        )
        return db.execute(stmt).scalar_one()

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------
    def create(
        self,
        db: Session,
        *,
        student_id: str,
        name: str,
        description: Optional[str] = "",
        set_active: bool = True,
    ) -> SessionFolder:
        if not student_id or not str(student_id).strip():
            raise ValidationError("studentId and name are required")
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("studentId and name are required")
        if len(clean_name) < MIN_NAME_LENGTH:
            raise ValidationError(
                f"Folder name must be at least {MIN_NAME_LENGTH} characters long"
            )
        clean_description = (description or "").strip()

        def _create() -> SessionFolder:
            now = _utcnow()
            deactivated = _deactivate_others(db, student_id, now) if set_active else 0
            folder = SessionFolder(
                id=new_folder_id(),
                student_id=student_id,
                name=clean_name,
                description=clean_description,
                is_active=bool(set_active),
                created_at=now,
                updated_at=now,
            )
            db.add(folder)
            db.commit()
            logger.info(
                "folder_created",
                folder_id=folder.id,
                student_id=student_id,
                active=folder.is_active,
                deactivated=deactivated,
            )
            return self._reload(db, folder.id)

        return self._with_retry(db, _create, "create")

    def set_active(self, db: Session, student_id: str, folder_id: str) -> SessionFolder:
        if not student_id or not folder_id:
            raise ValidationError("studentId and folderId are required")

        def _activate() -> SessionFolder:
            now = _utcnow()
            deactivated = _deactivate_others(db, student_id, now, keep_id=folder_id)
            result = db.execute(
                update(SessionFolder)
                .where(SessionFolder.id == folder_id)
                .where(SessionFolder.student_id == student_id)
                .values(is_active=True, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if not result.rowcount:
                # folder bestaat niet of hoort bij een andere student
                raise NotFound(
                    "Session folder not found",
                    details={"folder_id": folder_id, "student_id": student_id},
                )
            db.commit()
            logger.info(
                "folder_activated",
                folder_id=folder_id,
                student_id=student_id,
                deactivated=deactivated,
            )
            return self._reload(db, folder_id)

        return self._with_retry(db, _activate, "activate")

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get(self, db: Session, folder_id: str) -> SessionFolder:
        try:
            folder = db.get(SessionFolder, folder_id, populate_existing=True)
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to fetch session folder: {type(e).__name__}") from e
        if folder is None:
            raise NotFound("Session folder not found", details={"folder_id": folder_id})
        return folder

    def get_active(self, db: Session, student_id: str) -> Optional[SessionFolder]:
        stmt = (
            select(SessionFolder)
            .where(SessionFolder.student_id == student_id)
            .where(SessionFolder.is_active.is_(True))
            .limit(1)
            .execution_options(populate_existing=True)
        )
        try:
            return db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to fetch active folder: {type(e).__name__}") from e

    def list_for_student(
        self, db: Session, student_id: str, *, limit: int = 100, offset: int = 0
    ) -> List[SessionFolder]:
        stmt = (
            select(SessionFolder)
            .where(SessionFolder.student_id == student_id)
            .order_by(SessionFolder.created_at.desc(), SessionFolder.id.desc())
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        try:
            return list(db.scalars(stmt))
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to fetch folders: {type(e).__name__}") from e

    def stats(self, db: Session, student_id: str) -> Dict[str, object]:
        stmt = (
            select(SessionFolder.is_active, func.count())
            .where(SessionFolder.student_id == student_id)
            .group_by(SessionFolder.is_active)
        )
        try:
            counts = {bool(active): n for active, n in db.execute(stmt).all()}
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Failed to fetch folder stats: {type(e).__name__}") from e

        active = self.get_active(db, student_id)
        return {
            "totalFolders": counts.get(True, 0) + counts.get(False, 0),
            "activeFolders": counts.get(True, 0),
            "inactiveFolders": counts.get(False, 0),
            "activeFolderId": active.id if active else None,
        }
