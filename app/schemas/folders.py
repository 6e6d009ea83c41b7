# app/schemas/folders.py
from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from app.schemas.uploads import CamelModel


class FolderCreate(CamelModel):
    student_id: str = Field(min_length=1, max_length=255)
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = ""
    set_active: bool = True


class FolderOut(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    name: str
    description: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class FolderStats(CamelModel):
    total_folders: int = 0
    active_folders: int = 0
    inactive_folders: int = 0
    active_folder_id: Optional[str] = None


class FolderListResponse(CamelModel):
    folders: List[FolderOut]
    stats: FolderStats
    # pagina van folders; stats tellen altijd alles
    limit: int = 100
    offset: int = 0
