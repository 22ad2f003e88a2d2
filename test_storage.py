"""Tests for storage keys and the object storage backends.

Run with: uv run pytest test_storage.py
"""

from __future__ import annotations

import json

import httpx
import pytest

from medwallet.errors import ObjectExistsError, ObjectNotFoundError, StorageError
from medwallet.protocols import ObjectStorage
from medwallet.storage import (
    AssetKind,
    DocumentStore,
    LocalObjectStore,
    SupabaseStorage,
    asset_key,
    asset_prefix,
    is_record_blob,
    medication_scope,
    record_scope,
    safe_file_name,
)
from medwallet.storage.keys import blob_timestamp, photo_name


# =============================================================================
# Keys
# =============================================================================


def test_asset_keys_share_one_identity():
    scope = record_scope("demo-user")
    assert scope == "users/demo-user"
    assert asset_key(scope, "p1", AssetKind.RECORD, timestamp_ms=42) == "users/demo-user/42_data.json"
    assert asset_key(scope, "p1", AssetKind.PHOTO) == "users/demo-user/files/p1_person.jpg"
    assert (
        asset_key(scope, "p1", AssetKind.UPLOAD, "scan.pdf", timestamp_ms=7)
        == "users/demo-user/files/p1/uploads/7-scan.pdf"
    )
    assert (
        asset_key(scope, "p1", AssetKind.MEDICAL_DOCUMENT, "lab.pdf", timestamp_ms=7)
        == "users/demo-user/files/p1/medical_documents/7-lab.pdf"
    )
    assert asset_prefix(scope, "p1", AssetKind.MEDICAL_DOCUMENT) == "users/demo-user/files/p1/medical_documents"
    assert asset_prefix(scope, "p1", AssetKind.PHOTO) == "users/demo-user/files"
    assert photo_name("p1") == "p1_person.jpg"


def test_medication_keys():
    scope = medication_scope("u1")
    assert scope == "medication-timetable/u1"
    assert asset_key(scope, "u1", AssetKind.MEDICATION, "abc") == "medication-timetable/u1/abc_medication.json"


@pytest.mark.parametrize("bad", ["", "a/b", "..", "."])
def test_keys_reject_bad_segments(bad):
    with pytest.raises(ValueError):
        asset_key(record_scope("demo-user"), bad, AssetKind.PHOTO)


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("scan.pdf", "scan.pdf"),
        ("../../etc/passwd", "passwd"),
        ("C:\\scans\\lab report.pdf", "lab report.pdf"),
        ("..", "upload"),
        ("dir/", "upload"),
        ("  ", "upload"),
        (None, "upload"),
    ],
)
def test_safe_file_name(filename, expected):
    name = safe_file_name(filename)
    assert name == expected
    assert asset_key("users/p1", "p1", AssetKind.UPLOAD, name, timestamp_ms=1).endswith(f"/1-{expected}")


def test_record_blob_names():
    assert is_record_blob("1700000000000_data.json")
    assert not is_record_blob("notes.txt")
    assert not is_record_blob("1700_data.json.bak")
    assert blob_timestamp("1700000000000_data.json") == 1700000000000
    assert blob_timestamp("latest_data.json") == -1


# =============================================================================
# Local object store
# =============================================================================


async def test_local_store_round_trip(storage):
    assert isinstance(storage, ObjectStorage)
    await storage.upload("users/u/files/a.txt", b"hello", "text/plain")

    assert await storage.download("users/u/files/a.txt") == b"hello"
    listing = await storage.list("users/u")
    assert [(o.name, o.is_folder) for o in listing] == [("files", True)]

    files = await storage.list("users/u/files")
    assert files[0].name == "a.txt"
    assert files[0].size == 5
    assert files[0].content_type == "text/plain"
    assert storage.public_url("users/u/files/a.txt") == "https://cdn.test/files/users/u/files/a.txt"


async def test_local_store_overwrite_or_fail(storage):
    await storage.upload("k/one.bin", b"1")
    with pytest.raises(ObjectExistsError):
        await storage.upload("k/one.bin", b"2")
    await storage.upload("k/one.bin", b"3", upsert=True)
    assert await storage.download("k/one.bin") == b"3"


async def test_local_store_missing_objects(storage):
    assert await storage.list("nothing/here") == []
    with pytest.raises(ObjectNotFoundError):
        await storage.download("nothing/here.json")
    with pytest.raises(ObjectNotFoundError):
        await storage.remove(["nothing/here.json"])


async def test_local_store_refuses_escaping_keys(tmp_path):
    store = LocalObjectStore(tmp_path / "root")
    with pytest.raises(StorageError):
        await store.upload("../outside.txt", b"x")


# =============================================================================
# Supabase storage (mocked transport)
# =============================================================================


def _supabase(handler) -> SupabaseStorage:
    return SupabaseStorage(
        url="https://proj.supabase.co",
        key="anon-key",
        bucket="new",
        transport=httpx.MockTransport(handler),
    )


async def test_supabase_list_paginates_and_maps_entries():
    pages = [
        [{"name": f"{i}_data.json", "id": str(i), "created_at": "2024-01-01T00:00:00Z",
          "metadata": {"mimetype": "application/json", "size": 10}} for i in range(2)],
        [{"name": "files", "id": None, "metadata": None}],
    ]
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/storage/v1/object/list/new"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["authorization"] == "Bearer anon-key"
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(200, json=pages[body["offset"] // 2])

    client = _supabase(handler)
    objects = await client.list("users/demo-user", limit=2)

    assert [o.name for o in objects] == ["0_data.json", "1_data.json", "files"]
    assert objects[0].content_type == "application/json"
    assert objects[0].size == 10
    assert objects[2].is_folder
    assert [b["offset"] for b in bodies] == [0, 2]
    assert bodies[0]["prefix"] == "users/demo-user"


async def test_supabase_upload_sends_upsert_header():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["upsert"] = request.headers["x-upsert"]
        seen["type"] = request.headers["content-type"]
        seen["body"] = request.content
        return httpx.Response(200, json={"Key": "new/users/u/1_data.json"})

    client = _supabase(handler)
    key = await client.upload("users/u/1_data.json", b"{}", "application/json", upsert=True)

    assert key == "users/u/1_data.json"
    assert seen == {
        "path": "/storage/v1/object/new/users/u/1_data.json",
        "upsert": "true",
        "type": "application/json",
        "body": b"{}",
    }


async def test_supabase_error_mapping():
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("missing.json"):
            return httpx.Response(400, json={"statusCode": "404", "error": "not_found", "message": "Object not found"})
        if path.endswith("taken.json"):
            return httpx.Response(400, json={"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"})
        return httpx.Response(500, text="boom")

    client = _supabase(handler)
    with pytest.raises(ObjectNotFoundError):
        await client.download("users/u/missing.json")
    with pytest.raises(ObjectExistsError):
        await client.upload("users/u/taken.json", b"{}")
    with pytest.raises(StorageError) as exc_info:
        await client.download("users/u/other.json")
    assert exc_info.value.status_code == 500


async def test_supabase_transport_failure_is_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(StorageError):
        await _supabase(handler).list("users/u")


def test_supabase_public_url_and_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    assert SupabaseStorage().credentials_error() is not None

    client = SupabaseStorage(url="https://proj.supabase.co/", key="k", bucket="new")
    assert client.credentials_error() is None
    assert (
        client.public_url("users/u/files/p1_person.jpg")
        == "https://proj.supabase.co/storage/v1/object/public/new/users/u/files/p1_person.jpg"
    )


# =============================================================================
# Document store (mocked transport)
# =============================================================================


async def test_document_store_get_upsert_delete():
    rows: dict[str, dict] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/v1/patients"
        if request.method == "GET":
            key = request.url.params["id"].removeprefix("eq.")
            return httpx.Response(200, json=[rows[key]] if key in rows else [])
        if request.method == "POST":
            row = json.loads(request.content)
            rows[row["id"]] = row
            return httpx.Response(201, json=[row])
        if request.method == "DELETE":
            key = request.url.params["id"].removeprefix("eq.")
            removed = rows.pop(key, None)
            return httpx.Response(200, json=[removed] if removed else [])
        return httpx.Response(405)

    docs = DocumentStore(url="https://proj.supabase.co", key="k", transport=httpx.MockTransport(handler))

    with pytest.raises(ObjectNotFoundError):
        await docs.get("patients", "p1")
    await docs.upsert("patients", {"id": "p1", "full_name": "Ada"})
    assert (await docs.get("patients", "p1"))["full_name"] == "Ada"
    assert await docs.delete("patients", "p1") is True
    assert await docs.delete("patients", "p1") is False


async def test_document_store_http_error():
    docs = DocumentStore(
        url="https://proj.supabase.co",
        key="k",
        transport=httpx.MockTransport(lambda request: httpx.Response(401, text="bad key")),
    )
    with pytest.raises(StorageError) as exc_info:
        await docs.get("patients", "p1")
    assert exc_info.value.status_code == 401
