"""
Unit tests for AssetRegistrar register/revoke.
"""

import asyncio
import json
import threading
from urllib.parse import parse_qs, urlparse

import pytest

from core.exceptions import (
    AssetNotFoundError,
    BadRequestError,
    CatalogUnavailableError,
    ObjectStoreDeleteError,
    ObjectStoreWriteError,
    PartialFailureError,
    WeakPasswordError,
)

CATALOG_KEY = "metadata.json"
PASSWORD = "Abcdefg1!"


def register(registrar, name="report.pdf", folder=None, password=PASSWORD, data=b"%PDF-1.4 body"):
    return asyncio.run(registrar.register(
        original_file_name=name,
        folder_path=folder,
        password=password,
        uploader="admin@example.com",
        data=data,
        content_type="application/pdf",
    ))


def stored_asset_ids(object_store):
    document = json.loads(object_store.objects[CATALOG_KEY][0])
    return [a["assetId"] for a in document["assets"]]


class TestRegister:

    def test_stores_object_and_catalog_entry(self, registrar, object_store):
        result = register(registrar, folder="/finance/2024/")

        asset = result.asset
        assert asset.cos_object_key == "finance/2024/report.pdf"
        assert asset.file_name == "report.pdf"
        assert asset.created_by == "admin@example.com"
        assert asset.asset_id.startswith("report-")
        assert object_store.objects["finance/2024/report.pdf"][0] == b"%PDF-1.4 body"
        assert object_store.objects["finance/2024/report.pdf"][1] == "application/pdf"
        assert stored_asset_ids(object_store) == [asset.asset_id]

    def test_object_written_before_catalog(self, registrar, object_store):
        register(registrar)
        puts = [key for op, key in object_store.calls if op == "put"]
        assert puts == ["report.pdf", CATALOG_KEY]

    def test_returns_download_locator(self, registrar):
        result = register(registrar)
        parsed = urlparse(result.download_url)
        assert parsed.path == f"/download/{result.asset.asset_id}"
        assert parse_qs(parsed.query)["token"] == [PASSWORD]

    def test_appends_to_existing_catalog(self, registrar, object_store):
        first = register(registrar, name="a.pdf")
        second = register(registrar, name="b.pdf")
        assert stored_asset_ids(object_store) == [first.asset.asset_id, second.asset.asset_id]

    def test_same_file_name_gets_distinct_ids(self, registrar, object_store):
        first = register(registrar)
        second = register(registrar)
        assert first.asset.asset_id != second.asset.asset_id
        assert first.asset.cos_object_key == second.asset.cos_object_key
        assert len(stored_asset_ids(object_store)) == 2

    @pytest.mark.parametrize("password", ["alllower1!", "Abcdefg!", "Abcdefg1", ""])
    def test_weak_password_rejected_before_any_write(self, registrar, object_store, password):
        with pytest.raises(WeakPasswordError):
            register(registrar, password=password)
        assert object_store.calls == []

    def test_missing_file_name_is_bad_request(self, registrar):
        with pytest.raises(BadRequestError):
            register(registrar, name="")

    def test_object_write_failure_leaves_catalog_untouched(self, registrar, object_store):
        existing = register(registrar, name="a.pdf")
        object_store.fail_put.add("b.pdf")

        with pytest.raises(ObjectStoreWriteError):
            register(registrar, name="b.pdf")

        assert stored_asset_ids(object_store) == [existing.asset.asset_id]

    def test_catalog_write_failure_reports_orphaned_object(self, registrar, object_store):
        object_store.fail_put.add(CATALOG_KEY)

        with pytest.raises(PartialFailureError) as exc_info:
            register(registrar)

        assert exc_info.value.detail["orphaned_object_key"] == "report.pdf"
        assert "report.pdf" in object_store.objects

    def test_unreadable_catalog_is_not_overwritten(self, registrar, object_store):
        existing = register(registrar, name="a.pdf")
        object_store.fail_get.add(CATALOG_KEY)

        with pytest.raises(PartialFailureError):
            register(registrar, name="b.pdf")

        assert stored_asset_ids(object_store) == [existing.asset.asset_id]


class TestForeignFields:
    """Fields written by other catalog writers survive register and revoke."""

    @pytest.fixture
    def foreign_catalog(self, object_store):
        document = {
            "schemaNote": "kept",
            "assets": [{
                "assetId": "bundle-1",
                "fileName": "bundle.zip",
                "cosObjectKey": "bundle.zip",
                "password": PASSWORD,
                "createdAt": "2024-05-01T12:00:00Z",
                "createdBy": "other@example.com",
                "contentType": "application/zip",
            }],
        }
        object_store.objects[CATALOG_KEY] = (json.dumps(document).encode(), "application/json", None)

    def saved_document(self, object_store):
        return json.loads(object_store.objects[CATALOG_KEY][0])

    def test_register_keeps_unknown_fields(self, registrar, object_store, foreign_catalog):
        register(registrar, name="b.pdf")

        document = self.saved_document(object_store)
        assert document["schemaNote"] == "kept"
        assert document["assets"][0]["contentType"] == "application/zip"
        assert len(document["assets"]) == 2

    def test_revoke_keeps_unknown_fields(self, registrar, object_store, foreign_catalog):
        added = register(registrar, name="b.pdf")
        asyncio.run(registrar.revoke(added.asset.asset_id))

        document = self.saved_document(object_store)
        assert document["schemaNote"] == "kept"
        assert [a["assetId"] for a in document["assets"]] == ["bundle-1"]
        assert document["assets"][0]["contentType"] == "application/zip"


class TestRevoke:

    def test_removes_object_and_entry(self, registrar, object_store):
        keep = register(registrar, name="keep.pdf")
        gone = register(registrar, name="gone.pdf")

        removed = asyncio.run(registrar.revoke(gone.asset.asset_id))

        assert removed.asset_id == gone.asset.asset_id
        assert "gone.pdf" not in object_store.objects
        assert stored_asset_ids(object_store) == [keep.asset.asset_id]

    def test_unknown_asset_is_not_found(self, registrar):
        register(registrar)
        with pytest.raises(AssetNotFoundError):
            asyncio.run(registrar.revoke("missing-id"))

    def test_second_revoke_is_not_found_and_changes_nothing(self, registrar, object_store):
        keep = register(registrar, name="keep.pdf")
        gone = register(registrar, name="gone.pdf")
        asyncio.run(registrar.revoke(gone.asset.asset_id))
        after_first = object_store.objects[CATALOG_KEY][0]

        with pytest.raises(AssetNotFoundError):
            asyncio.run(registrar.revoke(gone.asset.asset_id))

        assert object_store.objects[CATALOG_KEY][0] == after_first
        assert stored_asset_ids(object_store) == [keep.asset.asset_id]

    def test_delete_failure_keeps_catalog_entry(self, registrar, object_store):
        result = register(registrar)
        object_store.fail_delete.add("report.pdf")

        with pytest.raises(ObjectStoreDeleteError):
            asyncio.run(registrar.revoke(result.asset.asset_id))

        assert stored_asset_ids(object_store) == [result.asset.asset_id]
        assert "report.pdf" in object_store.objects

    def test_catalog_write_failure_reports_dangling_entry(self, registrar, object_store):
        result = register(registrar)
        object_store.fail_put.add(CATALOG_KEY)

        with pytest.raises(PartialFailureError) as exc_info:
            asyncio.run(registrar.revoke(result.asset.asset_id))

        assert exc_info.value.detail["dangling_asset_id"] == result.asset.asset_id

    def test_unavailable_catalog_aborts_before_delete(self, registrar, object_store):
        result = register(registrar)
        object_store.fail_get.add(CATALOG_KEY)

        with pytest.raises(CatalogUnavailableError):
            asyncio.run(registrar.revoke(result.asset.asset_id))

        assert ("delete", "report.pdf") not in object_store.calls


class TestListing:

    def test_list_objects_hides_catalog(self, registrar):
        register(registrar, name="a.pdf", folder="docs")
        keys = [o.key for o in asyncio.run(registrar.list_objects())]
        assert keys == ["docs/a.pdf"]

    def test_list_objects_by_prefix(self, registrar):
        register(registrar, name="a.pdf", folder="docs")
        register(registrar, name="b.pdf", folder="other")
        keys = [o.key for o in asyncio.run(registrar.list_objects("other/"))]
        assert keys == ["other/b.pdf"]

    def test_list_assets_degrades_to_empty(self, registrar, object_store):
        register(registrar)
        object_store.fail_get.add(CATALOG_KEY)
        assert asyncio.run(registrar.list_assets()) == []


class TestConcurrentRegistration:

    def test_concurrent_registrations_can_lose_an_update(self, registrar, object_store):
        """
        Two uploads that both read the catalog before either saves it: last
        write wins and one entry is lost even though both objects are stored.
        """
        object_store.get_barrier = threading.Barrier(2)

        async def both():
            return await asyncio.gather(
                registrar.register("a.pdf", None, PASSWORD, "admin@example.com", b"a"),
                registrar.register("b.pdf", None, PASSWORD, "admin@example.com", b"b"),
            )

        first, second = asyncio.run(both())
        object_store.get_barrier = None

        surviving = stored_asset_ids(object_store)
        assert len(surviving) == 1
        assert surviving[0] in {first.asset.asset_id, second.asset.asset_id}
        assert "a.pdf" in object_store.objects
        assert "b.pdf" in object_store.objects
