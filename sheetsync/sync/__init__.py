"""Cloud sync: remote clients and the debounced sync engine."""

from sheetsync.sync.engine import ContentRemote, SyncEngine
from sheetsync.sync.remote import AuthClient, RemoteContentClient, RemoteUnavailableError, create_http_client

__all__ = [
    "AuthClient",
    "ContentRemote",
    "RemoteContentClient",
    "RemoteUnavailableError",
    "SyncEngine",
    "create_http_client",
]
