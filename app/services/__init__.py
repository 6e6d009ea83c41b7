# Services package for session files

from .content import ContentServer
from .direct_upload import DirectUploader
from .folders import FolderRegistry
from .grants import GrantIssuer
from .lifecycle import LifecycleManager
from .reconciler import MetadataReconciler

__all__ = [
    "ContentServer",
    "DirectUploader",
    "FolderRegistry",
    "GrantIssuer",
    "LifecycleManager",
    "MetadataReconciler",
]
