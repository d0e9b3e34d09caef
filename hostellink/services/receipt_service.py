from __future__ import annotations

import io
import random
import string
import time
import uuid
from datetime import datetime, timezone

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from sqlalchemy import update
from sqlalchemy.orm import Session

from hostellink.core.config import settings
from hostellink.models.booking import Booking
from hostellink.models.receipt import Receipt

DEPOSIT_HELD = "deposit_held"
RELEASED = "released"
REFUNDED = "refunded"
DISPUTED = "disputed"

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(n: int) -> str:
    out = ""
    while True:
        n, rem = divmod(n, 36)
        out = _BASE36[rem] + out
        if n == 0:
            return out


def make_receipt_number() -> str:
    """HL-<epoch millis in base36>-<4 random base36 chars>."""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_BASE36, k=4))
    return f"HL-{_to_base36(millis)}-{suffix}"


def issue_receipt(db: Session, booking: Booking) -> Receipt:
    """Snapshot the booking's payment into a receipt. Runs inside the booking's transaction."""
    # receipt_number must be unique
    for _ in range(10):
        number = make_receipt_number()
        exists = db.query(Receipt.id).filter(Receipt.receipt_number == number).first()
        if not exists:
            break
    else:
        raise ValueError("could not allocate receipt number")

    receipt = Receipt(
        id=str(uuid.uuid4()),
        booking_id=booking.id,
        student_id=booking.student_id,
        receipt_number=number,
        deposit_amount=booking.deposit_amount,
        platform_fee=booking.platform_fee,
        total_paid=booking.total_paid,
        payment_method=settings.PAYMENT_METHOD,
        status=DEPOSIT_HELD,
    )
    db.add(receipt)
    return receipt


def set_receipt_status(db: Session, booking_id: str, status: str) -> None:
    db.execute(
        update(Receipt)
        .where(Receipt.booking_id == booking_id)
        .values(status=status)
        .execution_options(synchronize_session=False)
    )


def get_receipt_for_booking(db: Session, booking_id: str) -> Receipt | None:
    return db.query(Receipt).filter(Receipt.booking_id == booking_id).first()


def render_receipt_pdf_bytes(*, receipt_number: str, student_name: str, hostel_name: str, room_number: str,
                             deposit_amount: int, platform_fee: int, total_paid: int,
                             payment_method: str, status: str, issued_at: datetime | None) -> bytes:
    """Return an A4 PDF bytes. Pure function."""
    cur = settings.CURRENCY_LABEL
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    _, h = A4

    # Header
    c.setFont("Helvetica-Bold", 18)
    c.drawString(40, h - 60, "HostelLink Payment Receipt")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 80, f"Receipt No: {receipt_number}")
    if issued_at:
        c.drawString(40, h - 96, f"Issued: {issued_at.strftime('%Y-%m-%d %H:%M')}")

    # Student / room block
    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 130, "Booking")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 148, f"Student: {student_name or '(Not provided)'}")
    c.drawString(40, h - 164, f"Hostel:  {hostel_name}")
    c.drawString(40, h - 180, f"Room:    {room_number or '-'}")

    # Amounts
    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, h - 215, "Payment")
    c.setFont("Helvetica", 11)
    c.drawString(40, h - 233, f"Room deposit:  {cur} {deposit_amount:,}")
    c.drawString(40, h - 249, f"Platform fee:  {cur} {platform_fee:,}")
    c.drawString(40, h - 265, f"Total paid:    {cur} {total_paid:,}")
    c.drawString(40, h - 281, f"Method: {payment_method.upper()}")
    c.drawString(40, h - 297, f"Status: {status.replace('_', ' ')}")

    # Footer
    c.setFont("Helvetica", 9)
    c.drawString(40, 40, "The deposit is held in escrow until you confirm the room. The platform fee is non-refundable.")
    c.drawString(40, 26, f"Generated: {datetime.now(timezone.utc).isoformat()}")

    c.showPage()
    c.save()
    return buf.getvalue()
