"""
Document listing, reads and mutations against one logical Firestore database.

Search is applied to the page that was already fetched with the structured
filter, ordering and limit; it never reaches the rest of the collection. A
search that matches nothing on this page can still match documents on later
pages, so callers page with ``nextCursor`` and not by the search result size.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from google.cloud.firestore import Query
from google.cloud.firestore_v1.base_query import FieldFilter

from ..errors import QueryError, store_errors
from ..schemas import CollectionList, DocumentRecord, FilterSpec, MutationResponse, OrderSpec, Page, QuerySpec
from ..utils import scalar_text, to_jsonable
from .firebase import ConnectionManager, ResolvedHandle

logger = logging.getLogger(__name__)

# request spelling -> SDK spelling
OPERATORS = {
    "==": "==",
    "!=": "!=",
    "<": "<",
    "<=": "<=",
    ">": ">",
    ">=": ">=",
    "array-contains": "array_contains",
    "array-contains-any": "array_contains_any",
    "in": "in",
    "not-in": "not-in",
}
MULTI_VALUE_OPERATORS = {"array-contains-any", "in", "not-in"}

DIRECTIONS = {"asc": Query.ASCENDING, "desc": Query.DESCENDING}


def build_field_filter(spec: FilterSpec) -> FieldFilter:
    if not spec.field:
        raise QueryError("Filter field is required")
    operator = spec.operator.strip().replace("_", "-")
    if operator not in OPERATORS:
        raise QueryError(f"Unsupported filter operator: {spec.operator}")
    value: Any = spec.value
    if operator in MULTI_VALUE_OPERATORS:
        value = [item.strip() for item in spec.value.split(",") if item.strip()]
        if not value:
            raise QueryError(f"Operator {operator} needs at least one value")
    return FieldFilter(spec.field, OPERATORS[operator], value)


def order_direction(spec: OrderSpec) -> str:
    direction = (spec.direction or "asc").lower()
    if direction not in DIRECTIONS:
        raise QueryError(f"Unsupported order direction: {spec.direction}")
    return DIRECTIONS[direction]


def matches_search(doc_id: str, data: Dict[str, Any], term: str) -> bool:
    """Case-insensitive substring match over the id and every top-level scalar value."""
    needle = term.lower()
    if needle in doc_id.lower():
        return True
    for value in data.values():
        text = scalar_text(value)
        if text is not None and needle in text.lower():
            return True
    return False


def count_documents(query) -> int:
    results = query.count(alias="total").get()
    return int(results[0][0].value)


class DocumentService:
    def __init__(self, conn_mgr: ConnectionManager) -> None:
        self._conn_mgr = conn_mgr

    def _collection(self, database_id: Optional[str], collection_id: str) -> Tuple[Any, ResolvedHandle]:
        if not collection_id or not collection_id.strip():
            raise QueryError("Collection ID is required")
        resolved = self._conn_mgr.get_handle(database_id)
        try:
            return resolved.client.collection(collection_id), resolved
        except ValueError as e:
            raise QueryError(f"Invalid collection path: {collection_id}") from e

    @staticmethod
    def _document(collection_ref, doc_id: str):
        try:
            return collection_ref.document(doc_id)
        except ValueError as e:
            raise QueryError(f"Invalid document id: {doc_id}") from e

    def list_documents(self, spec: QuerySpec) -> Page:
        if spec.limit <= 0:
            raise QueryError("limit must be greater than 0")
        field_filter = build_field_filter(spec.filter) if spec.filter else None
        direction = order_direction(spec.order_by) if spec.order_by else None

        logger.info("Fetching documents for collection: %s in database: %s", spec.collection_id, spec.database_id)
        collection_ref, resolved = self._collection(spec.database_id, spec.collection_id)

        base = collection_ref
        if field_filter is not None:
            base = base.where(filter=field_filter)

        with store_errors("fetch documents"):
            total = count_documents(base)

            query = base
            if spec.order_by:
                query = query.order_by(spec.order_by.field, direction=direction)
            query = query.limit(spec.limit)

            cursor_applied = False
            if spec.cursor_doc_id:
                cursor_snapshot = None
                try:
                    cursor_ref = collection_ref.document(spec.cursor_doc_id)
                except ValueError:
                    # an invalid id cannot name an existing document
                    cursor_ref = None
                if cursor_ref is not None:
                    cursor_snapshot = cursor_ref.get()
                if cursor_snapshot is not None and cursor_snapshot.exists:
                    query = query.start_after(cursor_snapshot)
                    cursor_applied = True
                else:
                    logger.info("Cursor document %s not found, reading from the start", spec.cursor_doc_id)

            rows = [(snap.id, snap.to_dict() or {}) for snap in query.stream()]

        logger.info("Found %d documents for collection: %s in database: %s",
                    len(rows), spec.collection_id, resolved.database_id)

        next_cursor = rows[-1][0] if rows else None
        has_more = len(rows) == spec.limit and len(rows) < total

        if spec.search_term:
            rows = [(doc_id, data) for doc_id, data in rows if matches_search(doc_id, data, spec.search_term)]

        return Page(
            documents=[DocumentRecord(id=doc_id, data=to_jsonable(data)) for doc_id, data in rows],
            total=total,
            has_more=has_more,
            next_cursor=next_cursor,
            cursor_applied=cursor_applied,
            database=resolved.database_id,
            requested_database=resolved.requested_id,
            fell_back=resolved.fell_back,
        )

    def get_document(self, database_id: Optional[str], collection_id: str, doc_id: str) -> Optional[DocumentRecord]:
        collection_ref, _ = self._collection(database_id, collection_id)
        with store_errors("fetch document"):
            snapshot = self._document(collection_ref, doc_id).get()
        if not snapshot.exists:
            return None
        return DocumentRecord(id=snapshot.id, data=to_jsonable(snapshot.to_dict() or {}))

    def upsert(self, database_id: Optional[str], collection_id: str, doc_id: Optional[str],
               data: Dict[str, Any]) -> MutationResponse:
        """Merge-write at ``doc_id`` when given, otherwise let Firestore pick the id."""
        collection_ref, resolved = self._collection(database_id, collection_id)
        with store_errors("save document"):
            if doc_id and doc_id.strip():
                doc_ref = self._document(collection_ref, doc_id)
                doc_ref.set(data, merge=True)
            else:
                _, doc_ref = collection_ref.add(data)
        logger.info("Saved document %s in collection: %s in database: %s",
                    doc_ref.id, collection_id, resolved.database_id)
        return MutationResponse(id=doc_ref.id, database=resolved.database_id)

    def delete(self, database_id: Optional[str], collection_id: str, doc_id: str) -> MutationResponse:
        collection_ref, resolved = self._collection(database_id, collection_id)
        with store_errors("delete document"):
            # deleting a missing document is a no-op in Firestore
            self._document(collection_ref, doc_id).delete()
        logger.info("Deleted document %s in collection: %s in database: %s",
                    doc_id, collection_id, resolved.database_id)
        return MutationResponse(id=doc_id, database=resolved.database_id)

    def list_collections(self, database_id: Optional[str]) -> CollectionList:
        resolved = self._conn_mgr.get_handle(database_id)
        with store_errors("list collections"):
            ids = [c.id for c in resolved.client.collections()]
        return CollectionList(
            collections=ids,
            database=resolved.database_id,
            requested_database=resolved.requested_id,
            fell_back=resolved.fell_back,
        )
