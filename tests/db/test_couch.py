"""
Tests for the CouchDB client against the in-memory store.
"""

import httpx
import pytest

from app.core.exceptions import ConflictError, NotFoundError, UpstreamError
from app.db.couch import CouchClient


@pytest.fixture
def lists(store):
    return store.collection("lists", label="List")


class TestDocuments:
    """Single document operations."""

    async def test_put_then_get(self, lists):
        result = await lists.put({"_id": "l1", "listName": "Noir"})

        assert result["id"] == "l1"
        assert result["rev"].startswith("1-")
        doc = await lists.get("l1")
        assert doc["listName"] == "Noir"
        assert doc["_rev"] == result["rev"]

    async def test_get_missing_uses_label(self, lists):
        with pytest.raises(NotFoundError) as exc_info:
            await lists.get("nope")
        assert str(exc_info.value) == "List not found!"

    async def test_post_assigns_id(self, lists, couch):
        result = await lists.post({"listName": "Noir"})

        assert couch.doc("lists", result["id"])["listName"] == "Noir"

    async def test_stale_rev_is_conflict(self, lists):
        first = await lists.put({"_id": "l1", "listName": "Noir"})
        await lists.put({"_id": "l1", "_rev": first["rev"], "listName": "Noir II"})

        with pytest.raises(ConflictError):
            await lists.put({"_id": "l1", "_rev": first["rev"], "listName": "Stale"})

    async def test_put_existing_without_rev_is_conflict(self, lists):
        await lists.put({"_id": "l1"})
        with pytest.raises(ConflictError):
            await lists.put({"_id": "l1"})

    async def test_delete(self, lists, couch):
        result = await lists.put({"_id": "l1"})
        await lists.delete("l1", result["rev"])

        assert couch.doc("lists", "l1") is None

    async def test_delete_missing(self, lists):
        with pytest.raises(NotFoundError):
            await lists.delete("nope", "1-abc")

    async def test_server_error_keeps_status(self, lists, couch):
        couch.failures[("GET", "/lists/l1")] = 500

        with pytest.raises(UpstreamError) as exc_info:
            await lists.get("l1")
        assert exc_info.value.status_code == 500
        assert exc_info.value.user_message == "Something broke!"


class TestBatch:
    """_all_docs, _bulk_docs and _find."""

    async def test_get_many_skips_missing(self, lists):
        await lists.put({"_id": "a"})
        await lists.put({"_id": "c"})

        docs = await lists.get_many(["c", "b", "a"])
        assert [d["_id"] for d in docs] == ["c", "a"]

    async def test_get_many_limit_skip(self, lists):
        for key in ["a", "b", "c", "d", "e"]:
            await lists.put({"_id": key})

        docs = await lists.get_many(["a", "b", "c", "d", "e"], limit=2, skip=2)
        assert [d["_id"] for d in docs] == ["c", "d"]

    async def test_all_docs_skips_design_documents(self, lists, couch):
        await lists.put({"_id": "l1"})
        couch.dbs["lists"]["_design/views"] = {"_id": "_design/views", "_rev": "1-x"}

        docs = await lists.all_docs()
        assert [d["_id"] for d in docs] == ["l1"]

    async def test_bulk_docs_reports_each_document(self, lists):
        first = await lists.put({"_id": "a"})
        await lists.put({"_id": "b"})

        results = await lists.bulk_docs([
            {"_id": "a", "_rev": first["rev"], "x": 1},
            {"_id": "b", "_rev": "9-stale", "x": 1},
        ])

        assert [r.id for r in results] == ["a", "b"]
        assert results[0].ok and results[0].rev.startswith("2-")
        assert not results[1].ok
        assert results[1].error == "conflict"

    async def test_find(self, store):
        comments = store.collection("comments")
        await comments.post({"movieId": "603", "text": "one"})
        await comments.post({"movieId": "604", "text": "two"})

        docs = await comments.find({"movieId": "603"})
        assert [d["text"] for d in docs] == ["one"]

    async def test_find_reads_past_the_default_page(self, store, couch):
        comments = store.collection("comments")
        for i in range(30):
            await comments.post({"movieId": "603", "text": f"comment {i}"})

        docs = await comments.find({"movieId": "603"})
        assert len(docs) == 30

    async def test_find_follows_bookmarks(self, store, couch):
        comments = store.collection("comments")
        for i in range(30):
            await comments.post({"movieId": "603", "text": f"comment {i}"})
        couch.requests.clear()

        docs = await comments.find({"movieId": "603"}, batch_size=10)

        assert [d["text"] for d in docs] == [f"comment {i}" for i in range(30)]
        assert couch.requests.count(("POST", "/comments/_find")) == 4

    async def test_find_with_limit(self, store):
        comments = store.collection("comments")
        for i in range(30):
            await comments.post({"movieId": "603", "text": f"comment {i}"})

        assert len(await comments.find({"movieId": "603"}, limit=5)) == 5


class TestServer:
    """Server level operations."""

    async def test_ping(self, store):
        assert await store.ping()

    async def test_create_database(self, store, couch):
        assert await store.create_database("extra") is True
        assert "extra" in couch.dbs
        assert await store.create_database("extra") is False

    async def test_unreachable_store(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = CouchClient(
            httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://couch.test")
        )

        assert await client.ping() is False
        with pytest.raises(UpstreamError) as exc_info:
            await client.collection("lists").get("l1")
        assert exc_info.value.status_code == 502
        await client.aclose()
