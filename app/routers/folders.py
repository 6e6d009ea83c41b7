# app/routers/folders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_folder_registry
from app.schemas.folders import FolderCreate, FolderListResponse, FolderOut, FolderStats
from app.services.folders import FolderRegistry

router = APIRouter(prefix="/folders", tags=["folders"])


@router.post("", response_model=FolderOut, status_code=201)
def create_folder(
    body: FolderCreate,
    db: Session = Depends(get_db),
    folders: FolderRegistry = Depends(get_folder_registry),
):
    folder = folders.create(
        db,
        student_id=body.student_id,
        name=body.name,
        description=body.description,
        set_active=body.set_active,
    )
    return FolderOut.model_validate(folder)


@router.get("", response_model=FolderListResponse)
def list_folders(
    student_id: str = Query(..., alias="studentId", min_length=1),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    folders: FolderRegistry = Depends(get_folder_registry),
):
    items = folders.list_for_student(db, student_id, limit=limit, offset=offset)
    stats = folders.stats(db, student_id)
    return FolderListResponse(
        folders=[FolderOut.model_validate(f) for f in items],
        stats=FolderStats.model_validate(stats),
        limit=limit,
        offset=offset,
    )


@router.get("/active", response_model=Optional[FolderOut])
def active_folder(
    student_id: str = Query(..., alias="studentId", min_length=1),
    db: Session = Depends(get_db),
    folders: FolderRegistry = Depends(get_folder_registry),
):
    folder = folders.get_active(db, student_id)
    return FolderOut.model_validate(folder) if folder else None


@router.get("/{folder_id}", response_model=FolderOut)
def get_folder(
    folder_id: str,
    db: Session = Depends(get_db),
    folders: FolderRegistry = Depends(get_folder_registry),
):
    return FolderOut.model_validate(folders.get(db, folder_id))


@router.post("/{folder_id}/activate", response_model=FolderOut)
def activate_folder(
    folder_id: str,
    student_id: Optional[str] = Query(None, alias="studentId"),
    db: Session = Depends(get_db),
    folders: FolderRegistry = Depends(get_folder_registry),
):
    """
    Maak deze folder de actieve folder van de student.
    Zonder studentId wordt de eigenaar van de folder gebruikt.
    """
    if not student_id:
        student_id = folders.get(db, folder_id).student_id
    return FolderOut.model_validate(folders.set_active(db, student_id, folder_id))
