"""Tests for the medication timetable and the session context.

Run with: uv run pytest test_medications.py
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from medwallet.errors import AccessDeniedError, ObjectNotFoundError, ParseError, StorageError
from medwallet.medications import MedicationForm, MedicationTracker
from medwallet.records import KeyValueStore
from medwallet.session import Role, SessionContext


@pytest.fixture
def tracker(storage) -> MedicationTracker:
    return MedicationTracker(storage)


# =============================================================================
# MedicationTracker
# =============================================================================


async def test_save_and_list(tracker, storage):
    first = await tracker.save("u1", MedicationForm(name="Metformin", dosage="500mg", schedule=["08:00", "20:00"]))
    second = await tracker.save("u1", MedicationForm.model_validate({"name": "Lisinopril", "nextRefill": "2024-06-01"}))

    listed = await tracker.list("u1")

    assert [m.name for m in listed] == ["Metformin", "Lisinopril"]
    assert listed[1].next_refill == "2024-06-01"
    assert {m.id for m in listed} == {first.id, second.id}
    assert all(m.user_id == "u1" for m in listed)
    await storage.download(f"medication-timetable/u1/{first.id}_medication.json")


async def test_list_empty_and_per_user(tracker):
    await tracker.save("u1", MedicationForm(name="Aspirin"))
    assert await tracker.list("u2") == []


async def test_edit_keeps_identity_and_created_at(tracker):
    original = await tracker.save("u1", MedicationForm(name="Aspirin", dosage="75mg"))

    edited = await tracker.save("u1", MedicationForm(name="Aspirin", dosage="100mg"), medication_id=original.id)

    assert edited.id == original.id
    assert edited.created_at == original.created_at
    assert edited.dosage == "100mg"
    assert [m.dosage for m in await tracker.list("u1")] == ["100mg"]


async def test_edit_unknown_medication(tracker):
    with pytest.raises(ObjectNotFoundError):
        await tracker.save("u1", MedicationForm(name="Aspirin"), medication_id="missing")


async def test_delete(tracker):
    medication = await tracker.save("u1", MedicationForm(name="Aspirin"))

    await tracker.delete("u1", medication.id)

    assert await tracker.list("u1") == []
    with pytest.raises(ObjectNotFoundError):
        await tracker.delete("u1", medication.id)


async def test_unreadable_blob_is_skipped(tracker, put_json):
    await tracker.save("u1", MedicationForm(name="Aspirin"))
    await put_json("medication-timetable/u1/broken_medication.json", "{nope")

    assert [m.name for m in await tracker.list("u1")] == ["Aspirin"]
    with pytest.raises(ParseError):
        await tracker.get("u1", "broken")


async def test_listing_failure_propagates(failing):
    failing.fail_list = True
    with pytest.raises(StorageError):
        await MedicationTracker(failing).list("u1")


def test_form_requires_name():
    with pytest.raises(ValidationError):
        MedicationForm(name="")


# =============================================================================
# SessionContext
# =============================================================================


def test_session_round_trip():
    kv = KeyValueStore()
    assert SessionContext.load(kv) == SessionContext()

    SessionContext(user_id="p-1001", role=Role.DOCTOR, is_authenticated=True).save(kv)
    loaded = SessionContext.load(kv)

    assert loaded.user_id == "p-1001"
    assert loaded.role is Role.DOCTOR
    assert loaded.is_authenticated
    assert kv.get("isAuthenticated") == "true"
    assert kv.get("userRole") == "doctor"

    SessionContext.clear(kv)
    assert SessionContext.load(kv).is_authenticated is False


def test_session_unknown_role_falls_back_to_user():
    kv = KeyValueStore()
    kv.set("userRole", "superuser")
    assert SessionContext.load(kv).role is Role.USER


def test_session_require():
    with pytest.raises(AccessDeniedError):
        SessionContext().require()

    doctor = SessionContext(role=Role.DOCTOR, is_authenticated=True)
    doctor.require(Role.ADMIN, Role.DOCTOR)
    with pytest.raises(AccessDeniedError):
        doctor.require(Role.ADMIN)


def test_session_can_access():
    user = SessionContext(user_id="p1", role=Role.USER, is_authenticated=True)
    admin = SessionContext(user_id="a1", role=Role.ADMIN, is_authenticated=True)

    assert user.can_access("p1")
    assert not user.can_access("p2")
    assert admin.can_access("p2")
    assert not SessionContext(user_id="p1").can_access("p1")
