# app/schemas/uploads.py
from datetime import datetime
from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """API JSON is camelCase, Python blijft snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GrantRequest(CamelModel):
    file_name: str = Field(min_length=1, max_length=1024)
    # oudere clients sturen fileType / fileSize
    mime_type: str = Field(
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("mimeType", "fileType", "mime_type"),
    )
    size_bytes: int = Field(
        ge=0,
        validation_alias=AliasChoices("sizeBytes", "fileSize", "sizeHint", "size_bytes"),
    )
    session_id: str = Field(min_length=1, max_length=255)


class GrantResponse(CamelModel):
    presigned_url: str
    file_id: str
    storage_key: str
    expires_at: datetime
    expires_in: int
    method: str = "PUT"
    headers: Dict[str, str] = {}


class FinalizeRequest(CamelModel):
    file_id: str = Field(min_length=1, max_length=64)
    file_name: str = Field(min_length=1, max_length=1024)
    mime_type: str = Field(
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("mimeType", "fileType", "mime_type"),
    )
    size_bytes: int = Field(
        ge=0,
        validation_alias=AliasChoices("sizeBytes", "fileSize", "size_bytes"),
    )
    session_id: str = Field(min_length=1, max_length=255)
    storage_key: str = Field(
        min_length=1,
        max_length=2048,
        validation_alias=AliasChoices("storageKey", "r2Key", "storage_key"),
    )
    uploaded_by: Optional[str] = None
