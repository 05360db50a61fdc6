"""QR codes printed on tickets and scanned at the venue entrance."""

from __future__ import annotations

from io import BytesIO

import qrcode  # type: ignore

from .models import QR_PREFIX


def render_qr_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    qr = qrcode.QRCode(version=None, box_size=box_size, border=border)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, "PNG")
    return buffer.getvalue()


def extract_booking_reference(scanned: str) -> str:
    """Booking id from a scanned ``TIME2PARK-BOOKING-<id>`` value.

    Anything else is returned stripped, to be matched as a raw token.
    """
    value = (scanned or "").strip()
    if value.upper().startswith(QR_PREFIX):
        return value[len(QR_PREFIX):]
    return value
