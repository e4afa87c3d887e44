import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..config import DEFAULT_DATABASE_ID
from ..dependencies import get_document_service
from ..errors import StoreUnavailableError
from ..schemas import CollectionList
from ..services.documents import DocumentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["collections"])


@router.get("/collections", response_model=CollectionList)
def list_collections(
    database: str = Query(DEFAULT_DATABASE_ID),
    svc: DocumentService = Depends(get_document_service),
):
    try:
        return svc.list_collections(database)
    except StoreUnavailableError as e:
        logger.error("Error listing collections for database %s: %s", database, e)
        return JSONResponse(
            status_code=404,
            content={
                "error": f"Failed to list collections for database {database}. "
                         "The database may not exist or your service account may not have access.",
                "collections": [],
            },
        )
