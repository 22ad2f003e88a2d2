"""Seed object storage with demo patient records.

Writes a handful of records (and their medication timetables) into the
admin scope so the aggregated patient list has something to show.

Usage:
    # Local filesystem store (default)
    uv run python -m medwallet.seed

    # Another directory, wiping it first
    uv run python -m medwallet.seed --storage-dir /tmp/wallet --clean

    # Supabase (reads SUPABASE_URL / SUPABASE_KEY)
    uv run python -m medwallet.seed --backend supabase
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import shutil
from pathlib import Path

from dotenv import load_dotenv

from .medications import MedicationForm, MedicationTracker
from .protocols import ObjectStorage
from .records import PatientRecord
from .storage import AssetKind, LocalObjectStore, SupabaseStorage, asset_key, record_scope

logger = logging.getLogger(__name__)

_DEFAULT_STORAGE_DIR = Path(__file__).resolve().parents[2] / "data" / "storage"

DEMO_PATIENTS = [
    {
        "id": "p-1001",
        "full_name": "Amara Okafor",
        "date_of_birth": "1986-04-12",
        "gender": "Female",
        "blood_group": "O+",
        "marital_status": "Married",
        "national_id": "NG-4471920",
        "contact_info": {
            "phone_number": "+234 803 555 0142",
            "email": "amara.okafor@example.com",
            "address": {"street": "14 Allen Ave", "city": "Ikeja", "state": "Lagos", "zip": "100271"},
            "emergency_contact": {"name": "Chidi Okafor", "phone": "+234 803 555 0199", "relationship": "Spouse"},
        },
        "medical_history": {
            "past_illnesses": ["Malaria"],
            "surgeries": [{"name": "Appendectomy", "date": "2009-08-03"}],
            "allergies": ["Penicillin"],
            "chronic_diseases": ["Asthma"],
            "family_medical_history": "Mother: type 2 diabetes",
            "smoking": {"status": False, "frequency": ""},
            "alcohol": {"status": True, "frequency": "Occasionally"},
        },
    },
    {
        "id": "p-1002",
        "full_name": "Daniel Reyes",
        "date_of_birth": "1972-11-30",
        "gender": "Male",
        "blood_group": "A-",
        "marital_status": "Divorced",
        "national_id": "MX-88213407",
        "contact_info": {
            "phone_number": "+52 55 5555 0101",
            "email": "d.reyes@example.com",
            "address": {"street": "Av. Reforma 222", "city": "Mexico City", "state": "CDMX", "zip": "06600"},
            "emergency_contact": {"name": "Lucia Reyes", "phone": "+52 55 5555 0177", "relationship": "Sister"},
        },
        "medical_history": {
            "chronic_diseases": ["Hypertension", "Type 2 diabetes"],
            "allergies": [],
            "family_medical_history": "Father: myocardial infarction at 61",
            "smoking": {"status": True, "frequency": "10/day"},
        },
    },
    {
        "id": "p-1003",
        "full_name": "Mei Lin",
        "date_of_birth": "1999-02-07",
        "gender": "Female",
        "blood_group": "AB+",
        "marital_status": "Single",
        "national_id": "SG-S9902071",
        "contact_info": {
            "phone_number": "+65 8555 0123",
            "email": "mei.lin@example.com",
            "emergency_contact": {"name": "Hua Lin", "phone": "+65 8555 0456", "relationship": "Mother"},
        },
        "medical_history": {
            "allergies": ["Peanuts", "Latex"],
            "disabilities": [],
            "genetic_conditions": ["G6PD deficiency"],
        },
    },
]

DEMO_MEDICATIONS = {
    "p-1002": [
        {"name": "Metformin", "dosage": "500mg", "frequency": "twice daily", "schedule": ["08:00", "20:00"]},
        {"name": "Lisinopril", "dosage": "10mg", "frequency": "once daily", "schedule": ["08:00"]},
    ],
    "p-1001": [
        {"name": "Salbutamol inhaler", "dosage": "100mcg", "frequency": "as needed", "schedule": []},
    ],
}


async def seed(storage: ObjectStorage, scope_owner: str = "demo-user") -> int:
    """Write the demo records into ``users/{scope_owner}``. Returns the count."""
    scope = record_scope(scope_owner)
    count = 0
    for offset, raw in enumerate(DEMO_PATIENTS):
        record = PatientRecord.model_validate(raw)
        # Distinct timestamps keep one blob per patient
        key = asset_key(scope, record.id, AssetKind.RECORD, timestamp_ms=1_700_000_000_000 + offset)
        await storage.upload(
            key,
            json.dumps(record.to_storage()).encode("utf-8"),
            content_type="application/json",
            upsert=True,
        )
        count += 1
        logger.info("Seeded %s (%s)", record.full_name, key)

    tracker = MedicationTracker(storage)
    for user_id, entries in DEMO_MEDICATIONS.items():
        for entry in entries:
            await tracker.save(user_id, MedicationForm.model_validate(entry))
    return count


def _build_storage(backend: str, storage_dir: Path, clean: bool) -> ObjectStorage:
    if backend == "supabase":
        storage = SupabaseStorage()
        cred_error = storage.credentials_error()
        if cred_error:
            raise SystemExit(cred_error)
        return storage

    if clean and storage_dir.exists():
        shutil.rmtree(storage_dir)
        print(f"Removed {storage_dir}")
    return LocalObjectStore(storage_dir)


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(description="Seed medwallet storage with demo patients")
    parser.add_argument(
        "--backend", choices=["local", "supabase"], default="local",
        help="Object storage to seed (default: local)",
    )
    parser.add_argument(
        "--storage-dir", type=str, default=str(_DEFAULT_STORAGE_DIR),
        help="Root directory of the local store",
    )
    parser.add_argument(
        "--scope-owner", type=str, default="demo-user",
        help="Owner segment of the admin scope (users/{owner})",
    )
    parser.add_argument(
        "--clean", action="store_true",
        help="Remove the local store before seeding",
    )
    args = parser.parse_args()

    target = _build_storage(args.backend, Path(args.storage_dir), args.clean)
    seeded = asyncio.run(seed(target, scope_owner=args.scope_owner))
    print(f"Seeded {seeded} patient record(s)")
