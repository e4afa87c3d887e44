"""
Dependency wiring for the FastAPI app.
"""

from typing import Optional

from fastapi import Depends

from .config import get_settings
from .services.documents import DocumentService
from .services.firebase import ConnectionManager
from .services.users import UserService

_conn_mgr: Optional[ConnectionManager] = None


def get_conn_mgr() -> ConnectionManager:
    """
    Return the application-wide connection manager so cached handles persist across requests.
    """
    global _conn_mgr
    if _conn_mgr is None:
        _conn_mgr = ConnectionManager(get_settings())
    return _conn_mgr


def get_document_service(conn_mgr: ConnectionManager = Depends(get_conn_mgr)) -> DocumentService:
    return DocumentService(conn_mgr)


def get_user_service(conn_mgr: ConnectionManager = Depends(get_conn_mgr)) -> UserService:
    return UserService(conn_mgr)
