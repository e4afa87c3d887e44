from fastapi import APIRouter, Depends

from ..dependencies import get_conn_mgr
from ..schemas import ConnectionStatus
from ..services.firebase import ConnectionManager

router = APIRouter(tags=["connections"])


@router.get("/connections", response_model=ConnectionStatus)
def connection_status(conn_mgr: ConnectionManager = Depends(get_conn_mgr)):
    return conn_mgr.status()


@router.delete("/connections/cache")
def clear_connection_cache(conn_mgr: ConnectionManager = Depends(get_conn_mgr)):
    return {"cleared": conn_mgr.clear_cache()}
