from datetime import datetime, timezone

import pytest
from google.api_core import exceptions as google_exceptions

from firestore_console.errors import QueryError, StoreUnavailableError
from firestore_console.schemas import FilterSpec, OrderSpec, QuerySpec
from firestore_console.services.documents import build_field_filter, matches_search


@pytest.fixture
def db(sdk):
    return sdk.database().seed("users", {
        "u1": {"name": "Alice", "status": "active", "age": 31, "tags": ["admin", "beta"]},
        "u2": {"name": "Bob", "status": "pending", "age": 25, "tags": ["beta"]},
        "u3": {"name": "Carol", "status": "banned", "age": 40, "verified": True},
    })


def spec(**kwargs) -> QuerySpec:
    kwargs.setdefault("collection_id", "users")
    return QuerySpec(**kwargs)


def ids(page):
    return [d.id for d in page.documents]


class TestPagination:
    def test_first_page(self, documents, db):
        page = documents.list_documents(spec(limit=2))
        assert ids(page) == ["u1", "u2"]
        assert page.total == 3
        assert page.has_more
        assert page.next_cursor == "u2"
        assert not page.cursor_applied

    def test_resume_after_cursor(self, documents, db):
        page = documents.list_documents(spec(limit=2, cursor_doc_id="u2"))
        assert ids(page) == ["u3"]
        assert page.cursor_applied
        assert not page.has_more
        assert page.next_cursor == "u3"

    def test_missing_cursor_reads_from_start(self, documents, db):
        plain = documents.list_documents(spec(limit=2))
        ghost = documents.list_documents(spec(limit=2, cursor_doc_id="deleted-doc"))
        assert ids(ghost) == ids(plain)
        assert ghost.has_more == plain.has_more
        assert ghost.next_cursor == plain.next_cursor
        assert not ghost.cursor_applied

    def test_invalid_cursor_id_reads_from_start(self, documents, db):
        plain = documents.list_documents(spec(limit=2))
        page = documents.list_documents(spec(limit=2, cursor_doc_id="a/b"))
        assert ids(page) == ids(plain)
        assert page.next_cursor == plain.next_cursor
        assert not page.cursor_applied

    def test_more_records_than_limit(self, documents, sdk):
        sdk.database().seed("events", {f"e{i:02d}": {"n": i} for i in range(11)})
        page = documents.list_documents(spec(collection_id="events", limit=10))
        assert page.has_more
        assert page.next_cursor == "e09"

    def test_empty_collection(self, documents, sdk):
        page = documents.list_documents(spec(collection_id="nothing", limit=5))
        assert page.documents == []
        assert page.total == 0
        assert page.next_cursor is None
        assert not page.has_more

    def test_order_descending(self, documents, db):
        page = documents.list_documents(spec(limit=3, order_by=OrderSpec(field="age", direction="desc")))
        assert ids(page) == ["u3", "u1", "u2"]

    def test_count_is_separate_round_trip(self, documents, db):
        documents.list_documents(spec(limit=1))
        assert ("count", "users") in db.calls
        assert ("stream", "users") in db.calls


class TestFilters:
    def test_in_splits_on_comma(self, documents, db):
        page = documents.list_documents(spec(limit=10, filter=FilterSpec(field="status", operator="in", value="active,pending")))
        assert ids(page) == ["u1", "u2"]

    def test_total_applies_filter(self, documents, db):
        page = documents.list_documents(spec(limit=1, filter=FilterSpec(field="status", operator="in", value="active,pending")))
        assert page.total == 2
        assert page.has_more

    def test_not_in(self, documents, db):
        page = documents.list_documents(spec(limit=10, filter=FilterSpec(field="status", operator="not-in", value="active, pending")))
        assert ids(page) == ["u3"]

    def test_array_contains(self, documents, db):
        page = documents.list_documents(spec(limit=10, filter=FilterSpec(field="tags", operator="array-contains", value="admin")))
        assert ids(page) == ["u1"]

    def test_array_contains_any(self, documents, db):
        page = documents.list_documents(spec(limit=10, filter=FilterSpec(field="tags", operator="array-contains-any", value="admin,beta")))
        assert ids(page) == ["u1", "u2"]

    def test_equality_on_string(self, documents, db):
        page = documents.list_documents(spec(limit=10, filter=FilterSpec(field="name", operator="==", value="Bob")))
        assert ids(page) == ["u2"]

    def test_sdk_operator_spelling(self):
        flt = build_field_filter(FilterSpec(field="tags", operator="array-contains-any", value=" a , ,b"))
        assert flt.op_string == "array_contains_any"
        assert flt.value == ["a", "b"]

    def test_unknown_operator(self, documents, db):
        with pytest.raises(QueryError, match="Unsupported filter operator"):
            documents.list_documents(spec(limit=10, filter=FilterSpec(field="name", operator="like", value="B")))

    def test_membership_needs_values(self):
        with pytest.raises(QueryError):
            build_field_filter(FilterSpec(field="status", operator="in", value=" , "))

    def test_bad_direction(self, documents, db):
        with pytest.raises(QueryError, match="order direction"):
            documents.list_documents(spec(limit=10, order_by=OrderSpec(field="age", direction="sideways")))


class TestSearch:
    def test_matches_string_case_insensitive(self, documents, db):
        page = documents.list_documents(spec(limit=10, search_term="ALI"))
        assert ids(page) == ["u1"]

    def test_matches_numbers_booleans_and_id(self, documents, db):
        assert ids(documents.list_documents(spec(limit=10, search_term="25"))) == ["u2"]
        assert ids(documents.list_documents(spec(limit=10, search_term="TRUE"))) == ["u3"]
        assert ids(documents.list_documents(spec(limit=10, search_term="u3"))) == ["u3"]

    def test_search_is_page_scoped(self, documents, db):
        page = documents.list_documents(spec(limit=2, search_term="carol"))
        assert page.documents == []
        # cursor and hasMore describe the page before search
        assert page.next_cursor == "u2"
        assert page.has_more
        assert page.total == 3

    def test_search_is_idempotent(self, documents, db):
        first = documents.list_documents(spec(limit=10, search_term="b"))
        second = documents.list_documents(spec(limit=10, search_term="b"))
        assert ids(first) == ids(second) == ["u2", "u3"]

    def test_nested_values_are_not_searched(self):
        assert not matches_search("d1", {"profile": {"name": "zed"}, "tags": ["zed"]}, "zed")
        assert matches_search("d1", {"score": 2.0}, "2")
        assert not matches_search("d1", {"score": 2.0}, "2.0")


class TestValidation:
    def test_collection_required(self, documents):
        with pytest.raises(QueryError, match="Collection ID is required"):
            documents.list_documents(spec(collection_id=" ", limit=10))

    def test_document_path_as_collection(self, documents, db):
        with pytest.raises(QueryError, match="Invalid collection path: users/u1"):
            documents.list_documents(spec(collection_id="users/u1", limit=10))

    def test_subcollection_path_is_accepted(self, documents, db):
        page = documents.list_documents(spec(collection_id="users/u1/orders", limit=10))
        assert page.total == 0

    @pytest.mark.parametrize("call", [
        lambda svc: svc.get_document(None, "users", "u1/x"),
        lambda svc: svc.upsert(None, "users", "u1/x", {"a": 1}),
        lambda svc: svc.delete(None, "users", "u1/x"),
    ])
    def test_invalid_document_id(self, documents, db, call):
        with pytest.raises(QueryError, match="Invalid document id"):
            call(documents)

    def test_limit_must_be_positive(self, documents):
        with pytest.raises(QueryError):
            documents.list_documents(spec(limit=0))

    def test_failed_precondition_is_query_error(self, documents, db):
        db.fail_with = google_exceptions.FailedPrecondition("The query requires an index")
        with pytest.raises(QueryError, match="requires an index"):
            documents.list_documents(spec(limit=10, order_by=OrderSpec(field="age")))

    def test_backend_outage(self, documents, db):
        db.fail_with = google_exceptions.ServiceUnavailable("try later")
        with pytest.raises(StoreUnavailableError):
            documents.list_documents(spec(limit=10))


class TestMutations:
    def test_upsert_merges(self, documents, sdk):
        documents.upsert(None, "users", "u1", {"name": "Alice"})
        documents.upsert(None, "users", "u1", {"age": 30})
        assert sdk.database().data["users"]["u1"] == {"name": "Alice", "age": 30}

    def test_upsert_without_id_generates_one(self, documents, sdk):
        result = documents.upsert("(default)", "users", "  ", {"name": "Dan"})
        assert result.id.strip()
        assert sdk.database().data["users"][result.id] == {"name": "Dan"}

    def test_delete_missing_is_noop(self, documents, db):
        result = documents.delete(None, "users", "ghost-id")
        assert result.id == "ghost-id"
        assert set(db.data["users"]) == {"u1", "u2", "u3"}

    def test_delete_existing(self, documents, db):
        documents.delete(None, "users", "u2")
        assert documents.get_document(None, "users", "u2") is None

    def test_get_converts_timestamps(self, documents, sdk):
        when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        sdk.database().seed("logs", {"l1": {"at": when, "raw": b"\x00\x01"}})
        doc = documents.get_document(None, "logs", "l1")
        assert doc.data == {"at": "2024-05-01T12:00:00+00:00", "raw": "AAE="}

    def test_writes_go_to_requested_database(self, documents, sdk):
        result = documents.upsert("analytics", "metrics", "m1", {"v": 1})
        assert result.database == "analytics"
        assert sdk.database("analytics").data["metrics"]["m1"] == {"v": 1}
        assert "metrics" not in sdk.database().data


def test_fallback_is_reported_on_page(documents, sdk, db):
    sdk.broken_databases.add("frankfurt")
    page = documents.list_documents(spec(database_id="frankfurt", limit=10))
    assert page.fell_back
    assert page.database == "(default)"
    assert page.requested_database == "frankfurt"
    assert page.total == 3


def test_list_collections(documents, db, sdk):
    sdk.database().seed("orders", {"o1": {}})
    listing = documents.list_collections(None)
    assert listing.collections == ["orders", "users"]
    assert listing.database == "(default)"
    assert not listing.fell_back


def test_list_collections_reports_fallback(documents, db, sdk):
    sdk.broken_databases.add("frankfurt")
    listing = documents.list_collections("frankfurt")
    assert listing.collections == ["users"]
    assert listing.fell_back
    assert listing.database == "(default)"
    assert listing.requested_database == "frankfurt"
