"""
Tests for the document store implementations and factory.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from caretrack.core.errors import StoreError
from caretrack.storage import LocalDocumentStore, MongoDocumentStore, create_document_store
from caretrack.storage.interface import matches


def test_matches_none_means_missing_or_null():
    assert matches({"role": None}, {"role": None})
    assert matches({}, {"role": None})
    assert not matches({"role": "Clinical"}, {"role": None})


class TestLocalDocumentStore:

    @pytest.mark.asyncio
    async def test_save_assigns_id(self, store):
        saved = await store.save("notes", {"content": "hello"})

        assert saved["_id"]
        assert await store.find_one("notes", {"_id": saved["_id"]}) == saved

    @pytest.mark.asyncio
    async def test_save_replaces_by_id(self, store):
        saved = await store.save("notes", {"content": "v1"})
        await store.save("notes", {**saved, "content": "v2"})

        assert await store.count("notes", {}) == 1
        assert (await store.find_one("notes", {"_id": saved["_id"]}))["content"] == "v2"

    @pytest.mark.asyncio
    async def test_find_by_filter(self, store):
        await store.save("tracking", {"patientId": "p1", "conditionType": "epilepsy"})
        await store.save("tracking", {"patientId": "p1", "conditionType": "diabetes"})
        await store.save("tracking", {"patientId": "p2", "conditionType": "epilepsy"})

        found = await store.find_one("tracking", {"patientId": "p1", "conditionType": "diabetes"})
        assert found["conditionType"] == "diabetes"
        assert await store.count("tracking", {"patientId": "p1"}) == 2
        assert await store.find_one("tracking", {"patientId": "p3"}) is None

    @pytest.mark.asyncio
    async def test_find_many_sort_skip_limit(self, store):
        for day in (3, 1, 4, 2):
            await store.save("rarescope", {"patientId": "p1", "updatedAt": f"2024-01-0{day}T00:00:00Z"})

        documents = await store.find_many(
            "rarescope", {"patientId": "p1"}, sort=[("updatedAt", -1)], skip=1, limit=2
        )
        assert [d["updatedAt"][:10] for d in documents] == ["2024-01-03", "2024-01-02"]

    @pytest.mark.asyncio
    async def test_delete_many(self, store):
        await store.save("messages", {"createdBy": "p1", "userId": "u1"})
        await store.save("messages", {"createdBy": "p1", "userId": "u2"})

        assert await store.delete_many("messages", {"createdBy": "p1", "userId": "u1"}) == 1
        assert await store.delete_many("messages", {"createdBy": "p1", "userId": "u1"}) == 0
        assert await store.count("messages", {}) == 1

    @pytest.mark.asyncio
    async def test_empty_collection(self, store):
        assert await store.find_many("notes", {}) == []
        assert await store.ping() is True

    @pytest.mark.asyncio
    async def test_rejects_path_traversal(self, store):
        with pytest.raises(StoreError):
            await store.save("../outside", {"content": "x"})
        with pytest.raises(StoreError):
            await store.find_one("notes", {"_id": "../../etc/passwd"})

    @pytest.mark.asyncio
    async def test_corrupt_document_raises_store_error(self, store, tmp_path):
        (tmp_path / "data" / "notes").mkdir(parents=True)
        (tmp_path / "data" / "notes" / "broken.json").write_text("{not json")

        with pytest.raises(StoreError):
            await store.find_many("notes", {})


class TestMongoDocumentStore:

    @pytest.mark.asyncio
    async def test_driver_errors_become_store_errors(self):
        store = MongoDocumentStore("mongodb://localhost:27017", "caretrack_test", server_selection_timeout_ms=100)
        collection = MagicMock()
        collection.find_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))
        store._database = {"tracking": collection}

        with pytest.raises(StoreError, match="Could not read from tracking"):
            await store.find_one("tracking", {"patientId": "patient-1"})


class TestFactory:

    def test_local(self, tmp_path):
        config = SimpleNamespace(storage_type="local", local_storage_path=str(tmp_path))
        assert isinstance(create_document_store(config), LocalDocumentStore)

    def test_mongo(self):
        config = SimpleNamespace(
            storage_type="mongo",
            mongo_url="mongodb://localhost:27017",
            mongo_database="caretrack_test",
            mongo_server_selection_timeout_ms=100,
        )
        assert isinstance(create_document_store(config), MongoDocumentStore)

    def test_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported storage type"):
            create_document_store(SimpleNamespace(storage_type="s3"))
