"""Business rules, one service per resource."""

from .auth import AuthService, ClientInfo, LoginResult, RefreshResult
from .collections import CollectionService
from .logs import LogViewer
from .media import IncomingFile, MediaFolderService, MediaService
from .products import ProductService

__all__ = [
    "AuthService",
    "ClientInfo",
    "CollectionService",
    "IncomingFile",
    "LogViewer",
    "LoginResult",
    "MediaFolderService",
    "MediaService",
    "ProductService",
    "RefreshResult",
]
