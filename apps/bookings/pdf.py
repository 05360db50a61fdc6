"""Printable booking confirmation."""

from __future__ import annotations

from io import BytesIO

from django.utils import timezone  # type: ignore
from reportlab.lib import colors  # type: ignore
from reportlab.lib.pagesizes import A4  # type: ignore
from reportlab.lib.styles import getSampleStyleSheet  # type: ignore
from reportlab.lib.units import mm  # type: ignore
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle  # type: ignore

from .models import Booking
from .qr import render_qr_png

GUIDELINES = [
    "Please arrive at least 30 minutes before your booking starts.",
    "Have this confirmation ready for scanning at the entrance.",
    "Parking spots are non-refundable after purchase.",
    "For assistance, contact support@time2park.com",
]


def _when(booking: Booking) -> list[list[str]]:
    tz = timezone.get_current_timezone()
    if booking.venue.is_event:
        start = timezone.localtime(booking.starts_at, tz)
        return [["Date", f"{start:%d %b %Y}"], ["Time", f"{start:%H:%M}"]]
    start = timezone.localtime(booking.starts_at, tz)
    end = timezone.localtime(booking.ends_at, tz)
    return [
        ["From", f"{start:%d %b %Y %H:%M}"],
        ["Until", f"{end:%d %b %Y %H:%M}"],
        ["Hours", str(booking.hours)],
    ]


def render_booking_confirmation(booking: Booking) -> bytes:
    """Single page PDF ticket with the booking QR code."""

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Time2Park booking {booking.pk}")
    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph("<b>TIME2PARK - Booking Confirmation</b>", styles["Title"]))
    story.append(Spacer(1, 12))

    venue = booking.venue
    rows = [
        [venue.get_kind_display(), venue.name],
        ["Location", venue.location],
        *_when(booking),
        ["Booking ID", str(booking.pk)],
        ["Parking spot" + ("s" if len(booking.slot_codes) > 1 else ""), ", ".join(booking.slot_codes)],
        ["Amount paid", f"{booking.payment_amount:,.2f} {booking.currency}"],
        ["Status", booking.get_status_display()],
    ]
    table = Table(rows, colWidths=[45 * mm, 110 * mm])
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("BACKGROUND", (0, 0), (0, -1), colors.whitesmoke),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    story.append(table)
    story.append(Spacer(1, 16))

    story.append(Image(BytesIO(render_qr_png(booking.qr_code)), width=55 * mm, height=55 * mm))
    story.append(Paragraph("Scan QR code at entrance", styles["Normal"]))
    story.append(Spacer(1, 16))

    story.append(Paragraph("<b>Important Information:</b>", styles["Heading4"]))
    for number, line in enumerate(GUIDELINES, start=1):
        story.append(Paragraph(f"{number}. {line}", styles["Normal"]))
    story.append(Spacer(1, 24))

    story.append(Paragraph("TIME2PARK - Your Parking Solution", styles["Italic"]))
    story.append(
        Paragraph(
            "This is an electronically generated document and does not require a signature.",
            styles["Italic"],
        )
    )

    doc.build(story)
    pdf_content = buffer.getvalue()
    buffer.close()
    return pdf_content
