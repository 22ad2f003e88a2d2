"""Medication timetable: one JSON blob per medication in object storage."""

from .schemas import Medication, MedicationForm
from .tracker import MedicationTracker

__all__ = ["Medication", "MedicationForm", "MedicationTracker"]
