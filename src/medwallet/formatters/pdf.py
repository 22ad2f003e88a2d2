"""Fixed-layout PDF export of a patient record."""

from __future__ import annotations

from fpdf import FPDF

from ..records.schemas import PatientRecord

LEFT = 20
TITLE_SIZE = 20
BODY_SIZE = 12
FONT = "Helvetica"


def _latin1(text: str) -> str:
    # Core PDF fonts only cover Latin-1
    return text.encode("latin-1", "replace").decode("latin-1")


def _layout(record: PatientRecord) -> list[tuple[int, str]]:
    """(y, text) lines of the body, in mm from the top of an A4 page."""
    contact = record.contact_info
    history = record.medical_history
    emergency = contact.emergency_contact
    return [
        (30, "Basic Information"),
        (40, f"Full Name: {record.full_name}"),
        (50, f"Date of Birth: {record.date_of_birth}"),
        (60, f"Gender: {record.gender.value}"),
        (70, f"Blood Group: {record.blood_group.value}"),
        (80, f"Marital Status: {record.marital_status.value}"),
        (90, f"National ID: {record.national_id}"),
        (110, "Contact Information"),
        (120, f"Phone: {contact.phone_number}"),
        (130, f"Email: {contact.email}"),
        (140, f"Address: {contact.address.one_line()}"),
        (150, f"Emergency Contact: {emergency.name} ({emergency.phone})"),
        (170, "Medical History"),
        (180, f"Past Illnesses: {', '.join(history.past_illnesses)}"),
        (190, f"Allergies: {', '.join(history.allergies)}"),
        (200, f"Chronic Diseases: {', '.join(history.chronic_diseases)}"),
        (210, f"Family Medical History: {history.family_medical_history}"),
    ]


def to_pdf(record: PatientRecord, title: str = "Patient Medical Record") -> bytes:
    """Render the record as a one-page A4 PDF and return its bytes."""
    pdf = FPDF(unit="mm", format="A4")
    pdf.set_title(_latin1(title))
    pdf.add_page()

    pdf.set_font(FONT, size=TITLE_SIZE)
    pdf.text(LEFT, 20, _latin1(title))

    pdf.set_font(FONT, size=BODY_SIZE)
    for y, line in _layout(record):
        pdf.text(LEFT, y, _latin1(line))

    return bytes(pdf.output())


def pdf_filename(record: PatientRecord) -> str:
    name = record.full_name.strip() or record.id or "patient"
    return f"{name.replace('/', '-')}-medical-record.pdf"
