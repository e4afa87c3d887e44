from fastapi import APIRouter, Depends, Query
from typing import Optional

from ..config import DEFAULT_DATABASE_ID, Settings, get_settings
from ..dependencies import get_document_service
from ..errors import NotFoundError
from ..schemas import (
    DocumentRecord,
    FilterSpec,
    MutationResponse,
    OrderSpec,
    Page,
    QuerySpec,
    UpdateRequest,
    UpsertRequest,
)
from ..services.documents import DocumentService

router = APIRouter(tags=["documents"])


@router.get("/documents", response_model=Page)
def list_documents(
    collection: Optional[str] = Query(None),
    database: str = Query(DEFAULT_DATABASE_ID),
    limit: Optional[int] = Query(None),
    last_doc_id: Optional[str] = Query(None, alias="lastDocId"),
    search: Optional[str] = Query(None),
    filter_field: Optional[str] = Query(None, alias="filterField"),
    filter_operator: str = Query("==", alias="filterOperator"),
    filter_value: Optional[str] = Query(None, alias="filterValue"),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order_direction: str = Query("asc", alias="orderDirection"),
    svc: DocumentService = Depends(get_document_service),
    settings: Settings = Depends(get_settings),
):
    spec = QuerySpec(
        database_id=database or DEFAULT_DATABASE_ID,
        collection_id=collection or "",
        limit=settings.default_page_size if limit is None else limit,
        cursor_doc_id=last_doc_id or None,
        search_term=search or None,
    )
    if filter_field and filter_value is not None:
        spec.filter = FilterSpec(field=filter_field, operator=filter_operator, value=filter_value)
    if order_by:
        spec.order_by = OrderSpec(field=order_by, direction=order_direction)
    return svc.list_documents(spec)


@router.get("/documents/{doc_id}", response_model=DocumentRecord)
def get_document(
    doc_id: str,
    collection: Optional[str] = Query(None),
    database: str = Query(DEFAULT_DATABASE_ID),
    svc: DocumentService = Depends(get_document_service),
):
    doc = svc.get_document(database, collection or "", doc_id)
    if doc is None:
        raise NotFoundError("Document not found")
    return doc


@router.post("/documents", response_model=MutationResponse)
def create_document(
    payload: UpsertRequest,
    collection: Optional[str] = Query(None),
    database: str = Query(DEFAULT_DATABASE_ID),
    svc: DocumentService = Depends(get_document_service),
):
    return svc.upsert(database, collection or "", payload.id, payload.data)


@router.put("/documents/{doc_id}", response_model=MutationResponse)
def update_document(
    doc_id: str,
    payload: UpdateRequest,
    collection: Optional[str] = Query(None),
    database: str = Query(DEFAULT_DATABASE_ID),
    svc: DocumentService = Depends(get_document_service),
):
    return svc.upsert(database, collection or "", doc_id, payload.data)


@router.delete("/documents/{doc_id}", response_model=MutationResponse)
def delete_document(
    doc_id: str,
    collection: Optional[str] = Query(None),
    database: str = Query(DEFAULT_DATABASE_ID),
    svc: DocumentService = Depends(get_document_service),
):
    return svc.delete(database, collection or "", doc_id)
