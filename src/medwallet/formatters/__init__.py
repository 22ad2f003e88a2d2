"""Record exports: QR payload for emergency access and PDF."""

from .pdf import pdf_filename, to_pdf
from .qr import parse_qr_payload, qr_view, render_qr_png, to_qr_payload

__all__ = [
    "to_qr_payload",
    "parse_qr_payload",
    "qr_view",
    "render_qr_png",
    "to_pdf",
    "pdf_filename",
]
