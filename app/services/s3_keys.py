# app/services/s3_keys.py
from pathlib import PurePosixPath
from typing import Dict
from urllib.parse import quote
import uuid

SESSIONS_PREFIX = "sessions"


def s3_key_join(*parts: str) -> str:
    cleaned = [str(p).strip("/ ") for p in parts if p is not None and str(p).strip("/ ")]
    return "/".join(cleaned)


def _safe_filename(filename: str) -> str:
    filename = filename.replace("\\", "/")
    filename = PurePosixPath(filename).name
    filename = filename.replace("..", "")
    return filename.strip() or "file"


# Twee losse ID-ruimtes: storage (file_id) en metadata (record_id).
# Ze worden nooit uit elkaar afgeleid.
def new_file_id() -> str:
    return uuid.uuid4().hex


def new_record_id() -> str:
    return uuid.uuid4().hex


def new_folder_id() -> str:
    return uuid.uuid4().hex


def build_session_file_key(session_id: str, file_id: str, filename: str) -> str:
    # sessions/{session_id}/{file_id}_{filename}
    return s3_key_join(
        SESSIONS_PREFIX,
        _safe_filename(session_id),
        f"{file_id}_{_safe_filename(filename)}",
    )


def filename_from_key(key: str) -> str:
    """sessions/s1/abc123_report.pdf -> report.pdf"""
    name = key.rsplit("/", 1)[-1]
    prefix, sep, rest = name.partition("_")
    if sep and prefix and rest:
        return rest
    return name


def object_metadata(session_id: str, filename: str, file_id: str) -> Dict[str, str]:
    # x-amz-meta-* moet ASCII zijn, originele naam dus percent-encoded
    return {
        "session-id": session_id,
        "original-name": quote(filename, safe=""),
        "file-id": file_id,
    }
