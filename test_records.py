"""Tests for record schemas and the record store adapters.

Run with: uv run pytest test_records.py
"""

from __future__ import annotations

import json

import pytest

from medwallet.errors import ObjectExistsError, ObjectNotFoundError, ParseError, RecordNotFoundError
from medwallet.protocols import RecordBackend
from medwallet.records import (
    BloodGroup,
    DocumentRecordStore,
    Gender,
    PatientRecord,
    default_record,
    filter_patients,
    parse_record,
)
from medwallet.storage import AssetKind


# =============================================================================
# Schemas
# =============================================================================


def test_record_accepts_camel_and_snake_case():
    camel = PatientRecord.model_validate(
        {
            "id": "p1",
            "fullName": "Ada Lovelace",
            "bloodGroup": "O-",
            "contactInfo": {"phoneNumber": "555", "emergencyContact": {"name": "Byron"}},
            "medicalHistory": {"chronicDiseases": ["Asthma"], "smoking": {"status": True}},
        }
    )
    snake = PatientRecord.model_validate(
        {
            "id": "p1",
            "full_name": "Ada Lovelace",
            "blood_group": "O-",
            "contact_info": {"phone_number": "555", "emergency_contact": {"name": "Byron"}},
            "medical_history": {"chronic_diseases": ["Asthma"], "smoking": {"status": True}},
        }
    )
    assert camel.full_name == snake.full_name == "Ada Lovelace"
    assert camel.blood_group is BloodGroup.O_NEG
    assert camel.contact_info.emergency_contact.name == "Byron"
    assert camel.medical_history.smoking.status is True
    assert camel.model_dump(exclude={"created_at"}) == snake.model_dump(exclude={"created_at"})


def test_record_serialises_both_ways():
    record = PatientRecord(id="p1", full_name="Ada")
    assert record.to_storage()["full_name"] == "Ada"
    assert record.model_dump(by_alias=True)["fullName"] == "Ada"


def test_default_record_is_empty_but_valid():
    record = default_record("p9")
    assert record.id == "p9"
    assert record.full_name == ""
    assert record.gender is Gender.MALE
    assert record.uploaded_files == []
    assert record.medical_history.allergies == []


def test_with_updates_replaces_top_level_fields():
    record = PatientRecord(id="p1", full_name="Ada", national_id="X1")
    updated = record.with_updates({"fullName": "Ada King", "contact_info": {"email": "ada@example.com"}})

    assert updated.full_name == "Ada King"
    assert updated.national_id == "X1"
    assert updated.contact_info.email == "ada@example.com"
    assert record.full_name == "Ada"


def test_with_updates_rejects_invalid_values():
    with pytest.raises(ValueError):
        PatientRecord(id="p1").with_updates({"bloodGroup": "Z+"})


def test_parse_record_errors():
    with pytest.raises(ParseError) as exc_info:
        parse_record(b"{not json", "users/u/1_data.json")
    assert exc_info.value.key == "users/u/1_data.json"

    with pytest.raises(ParseError):
        parse_record(b"[1, 2]", "k")
    with pytest.raises(ParseError):
        parse_record(json.dumps({"id": "p1", "gender": "Robot"}), "k")


# =============================================================================
# RecordStore
# =============================================================================


async def test_get_record_missing_raises(store):
    assert isinstance(store, RecordBackend)
    with pytest.raises(RecordNotFoundError):
        await store.get_record("p1")


async def test_put_then_get_record(store, storage):
    key = await store.put_record("p1", PatientRecord(full_name="Ada"))

    assert key.startswith("users/p1/") and key.endswith("_data.json")
    stored = json.loads(await storage.download(key))
    assert stored["id"] == "p1"
    assert stored["full_name"] == "Ada"
    assert stored["updated_at"]

    record = await store.get_record("p1")
    assert record.id == "p1"
    assert record.full_name == "Ada"


async def test_get_record_picks_newest_blob(store, put_json):
    await put_json("users/p1/1000_data.json", {"id": "p1", "full_name": "Old"})
    await put_json("users/p1/3000_data.json", {"id": "p1", "full_name": "Newest"})
    await put_json("users/p1/2000_data.json", {"id": "p1", "full_name": "Middle"})
    await put_json("users/p1/notes.txt", "ignored")

    assert (await store.get_record("p1")).full_name == "Newest"


async def test_get_record_fills_missing_id(store, put_json):
    await put_json("users/p1/1000_data.json", {"full_name": "No id"})
    assert (await store.get_record("p1")).id == "p1"


async def test_get_record_malformed_raises_parse_error(store, put_json):
    await put_json("users/p1/1000_data.json", "{oops")
    with pytest.raises(ParseError):
        await store.get_record("p1")


async def test_upload_photo_overwrites(store, storage):
    first = await store.upload_asset("p1", AssetKind.PHOTO, "me.jpg", b"one", "image/jpeg")
    second = await store.upload_asset("p1", AssetKind.PHOTO, "me-again.jpg", b"two", "image/jpeg")

    assert first == second == "https://cdn.test/files/users/p1/files/p1_person.jpg"
    assert await storage.download("users/p1/files/p1_person.jpg") == b"two"
    assert await store.photo_url("p1") == first


async def test_upload_documents_never_overwrite(store, monkeypatch):
    monkeypatch.setattr("medwallet.storage.keys.now_ms", lambda: 1234)
    await store.upload_asset("p1", AssetKind.UPLOAD, "scan.pdf", b"a", "application/pdf")
    with pytest.raises(ObjectExistsError):
        await store.upload_asset("p1", AssetKind.UPLOAD, "scan.pdf", b"b", "application/pdf")


async def test_upload_rejects_non_asset_kinds(store):
    with pytest.raises(ValueError):
        await store.upload_asset("p1", AssetKind.RECORD, "x.json", b"{}")


async def test_list_assets_by_kind(store):
    await store.upload_asset("p1", AssetKind.UPLOAD, "scan.pdf", b"a", "application/pdf")
    await store.upload_asset("p1", AssetKind.MEDICAL_DOCUMENT, "lab.pdf", b"b", "application/pdf")

    uploads = await store.list_assets("p1", AssetKind.UPLOAD)
    documents = await store.list_assets("p1", AssetKind.MEDICAL_DOCUMENT)

    assert [ref.name.split("-", 1)[1] for ref in uploads] == ["scan.pdf"]
    assert uploads[0].key.startswith("users/p1/files/p1/uploads/")
    assert uploads[0].url == f"https://cdn.test/files/{uploads[0].key}"
    assert uploads[0].content_type == "application/pdf"
    assert [ref.name.split("-", 1)[1] for ref in documents] == ["lab.pdf"]

    assert await store.list_assets("p2", AssetKind.UPLOAD) == []
    with pytest.raises(ValueError):
        await store.list_assets("p1", AssetKind.PHOTO)


async def test_photo_url_absent(store):
    assert await store.photo_url("p1") is None


# =============================================================================
# DocumentRecordStore
# =============================================================================


class FakeDocuments:
    """In-memory stand-in for DocumentStore."""

    def __init__(self):
        self.rows: dict[tuple[str, str], dict] = {}

    async def get(self, table, key):
        if (table, key) not in self.rows:
            raise ObjectNotFoundError(f"{table}/{key} not found", key=key)
        return self.rows[(table, key)]

    async def upsert(self, table, row):
        self.rows[(table, row["id"])] = row
        return row

    async def delete(self, table, key):
        return self.rows.pop((table, key), None) is not None


async def test_document_record_store_round_trip():
    docs = FakeDocuments()
    backend = DocumentRecordStore(docs, table="patients")

    with pytest.raises(RecordNotFoundError):
        await backend.get_record("p1")

    key = await backend.put_record("p1", PatientRecord(full_name="Ada"))
    assert key == "patients/p1"
    assert docs.rows[("patients", "p1")]["id"] == "p1"
    assert (await backend.get_record("p1")).full_name == "Ada"

    assert await backend.delete_record("p1") is True
    assert await backend.delete_record("p1") is False


async def test_document_record_store_invalid_row():
    docs = FakeDocuments()
    docs.rows[("patients", "p1")] = {"id": "p1", "gender": "Robot"}
    with pytest.raises(ParseError):
        await DocumentRecordStore(docs).get_record("p1")


# =============================================================================
# Filters
# =============================================================================


def test_filter_patients():
    records = [
        PatientRecord(id="1", full_name="Amara Okafor", gender="Female", blood_group="O+"),
        PatientRecord(id="2", full_name="Daniel Reyes", gender="Male", blood_group="A-"),
        PatientRecord(id="3", full_name="Mei Lin", gender="Female", blood_group="AB+"),
    ]

    assert [r.id for r in filter_patients(records)] == ["1", "2", "3"]
    assert [r.id for r in filter_patients(records, search="  LIN ")] == ["3"]
    assert [r.id for r in filter_patients(records, gender=Gender.FEMALE)] == ["1", "3"]
    assert [r.id for r in filter_patients(records, gender=Gender.FEMALE, blood_group=BloodGroup.O_POS)] == ["1"]
    assert filter_patients(records, search="nobody") == []
