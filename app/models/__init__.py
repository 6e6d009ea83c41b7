# Models package for session files

from .file_record import FileCategory, FileRecord, RetirementState
from .session_folder import SessionFolder

__all__ = [
    "FileCategory",
    "FileRecord",
    "RetirementState",
    "SessionFolder",
]
