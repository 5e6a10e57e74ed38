"""Data models shared by the editor and the content service."""

from sheetsync.models.api import AuthStatus, ContentResponse, ContentUpdate, UserInfo
from sheetsync.models.document import DEFAULT_TEXT, Document, ImageBlob, word_count
from sheetsync.models.enums import SyncState, SyncStatus, WorkspaceVersion
from sheetsync.models.workspace import LegacyWorkspaceSnapshot, WorkspaceSnapshot

__all__ = [
    # API schemas
    "AuthStatus",
    "ContentResponse",
    "ContentUpdate",
    # Document
    "DEFAULT_TEXT",
    "Document",
    "ImageBlob",
    "LegacyWorkspaceSnapshot",
    # Enums
    "SyncState",
    "SyncStatus",
    "UserInfo",
    "WorkspaceSnapshot",
    "WorkspaceVersion",
    "word_count",
]
