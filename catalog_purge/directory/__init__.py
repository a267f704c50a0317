from .base import CatalogHandle, ConnectionSettings, DirectoryClient, Session
from .errors import DirectoryConnectionError, DirectoryError
from .factory import build_directory_client

__all__ = [
    "CatalogHandle",
    "ConnectionSettings",
    "DirectoryClient",
    "DirectoryConnectionError",
    "DirectoryError",
    "Session",
    "build_directory_client",
]
