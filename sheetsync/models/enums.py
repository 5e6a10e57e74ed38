"""Shared enumerations."""

from __future__ import annotations

from enum import StrEnum

# -- Sync --------------------------------------------------------------------


class SyncState(StrEnum):
    """Sync engine state machine."""

    IDLE = "idle"
    PENDING_PUSH = "pending_push"
    PUSHING = "pushing"
    HYDRATING = "hydrating"


class SyncStatus(StrEnum):
    """User-facing sync indicator."""

    OFFLINE = "offline"
    SYNCED = "synced"
    PENDING = "pending"
    ERROR = "error"


# -- Workspace ---------------------------------------------------------------


class WorkspaceVersion(StrEnum):
    """Workspace file format versions."""

    LEGACY = "1.0"
    CURRENT = "2.0"
