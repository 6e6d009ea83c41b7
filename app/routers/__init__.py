# Routers package for session files

from . import files, folders, uploads

__all__ = [
    "files",
    "folders",
    "uploads",
]
