from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from hostellink.db.session import get_db
from hostellink.api.deps import require_roles
from hostellink.core.identity import Identity, STUDENT, ADMIN
from hostellink.models.booking import Booking
from hostellink.models.hostel import Hostel
from hostellink.models.receipt import Receipt
from hostellink.models.room import Room
from hostellink.models.user import User
from hostellink.schemas.booking import BookingCreate, BookingOut, CancelRequest, DisputeRequest, ReceiptOut
from hostellink.services import booking_service, escrow_service
from hostellink.services.receipt_service import get_receipt_for_booking, render_receipt_pdf_bytes

router = APIRouter(tags=["bookings"])


def _iso(dt):
    return dt.isoformat() if dt else None


def receipt_out(r: Receipt) -> ReceiptOut:
    return ReceiptOut(
        id=r.id,
        bookingId=r.booking_id,
        receiptNumber=r.receipt_number,
        depositAmount=r.deposit_amount,
        platformFee=r.platform_fee,
        totalPaid=r.total_paid,
        paymentMethod=r.payment_method,
        status=r.status,
        issuedAt=_iso(r.issued_at),
    )


def booking_out(b: Booking, receipt: Receipt | None = None) -> BookingOut:
    return BookingOut(
        id=b.id,
        studentId=b.student_id,
        hostelId=b.hostel_id,
        roomId=b.room_id,
        depositAmount=b.deposit_amount,
        platformFee=b.platform_fee,
        totalPaid=b.total_paid,
        paymentStatus=b.payment_status,
        escrowStatus=b.escrow_status,
        mpesaTransactionId=b.mpesa_transaction_id,
        bookedAt=_iso(b.booked_at),
        confirmedAt=_iso(b.confirmed_at),
        cancelledAt=_iso(b.cancelled_at),
        cancellationReason=b.cancellation_reason,
        disputeReason=b.dispute_reason,
        adminResolution=b.admin_resolution,
        receipt=receipt_out(receipt) if receipt else None,
    )


@router.post("/student/bookings", response_model=BookingOut)
def create_booking(body: BookingCreate, db: Session = Depends(get_db),
                   me: Identity = Depends(require_roles(STUDENT))):
    """Pay deposit + platform fee via M-Pesa and hold the room in escrow."""
    b, receipt = booking_service.create_booking(db, me, body.roomId, phone_number=body.phoneNumber)
    return booking_out(b, receipt)


@router.get("/student/bookings", response_model=list[BookingOut])
def list_my_bookings(db: Session = Depends(get_db), me: Identity = Depends(require_roles(STUDENT))):
    return [booking_out(b, get_receipt_for_booking(db, b.id)) for b in booking_service.list_student_bookings(db, me)]


@router.get("/student/bookings/{booking_id}", response_model=BookingOut)
def get_my_booking(booking_id: str, db: Session = Depends(get_db),
                   me: Identity = Depends(require_roles(STUDENT))):
    b = booking_service.get_booking(db, me, booking_id)
    return booking_out(b, get_receipt_for_booking(db, b.id))


@router.post("/student/bookings/{booking_id}/confirm", response_model=BookingOut)
def confirm_room(booking_id: str, db: Session = Depends(get_db),
                 me: Identity = Depends(require_roles(STUDENT))):
    b = escrow_service.confirm_room(db, me, booking_id)
    return booking_out(b, get_receipt_for_booking(db, b.id))


@router.post("/student/bookings/{booking_id}/cancel", response_model=BookingOut)
def cancel_booking(booking_id: str, body: CancelRequest | None = None, db: Session = Depends(get_db),
                   me: Identity = Depends(require_roles(STUDENT))):
    b = escrow_service.cancel_booking(db, me, booking_id, reason=body.reason if body else None)
    return booking_out(b, get_receipt_for_booking(db, b.id))


@router.post("/student/bookings/{booking_id}/dispute", response_model=BookingOut)
def raise_dispute(booking_id: str, body: DisputeRequest, db: Session = Depends(get_db),
                  me: Identity = Depends(require_roles(STUDENT))):
    b = escrow_service.raise_dispute(db, me, booking_id, body.reason)
    return booking_out(b, get_receipt_for_booking(db, b.id))


@router.get("/student/receipts", response_model=list[ReceiptOut])
def list_my_receipts(db: Session = Depends(get_db), me: Identity = Depends(require_roles(STUDENT))):
    return [receipt_out(r) for r in booking_service.list_student_receipts(db, me)]


@router.get("/student/receipts/{receipt_number}/pdf")
def download_receipt(receipt_number: str, db: Session = Depends(get_db),
                     me: Identity = Depends(require_roles(STUDENT, ADMIN))):
    r = booking_service.get_receipt_by_number(db, me, receipt_number)
    b = db.get(Booking, r.booking_id)
    hostel = db.get(Hostel, b.hostel_id) if b else None
    room = db.get(Room, b.room_id) if b and b.room_id else None
    student = db.get(User, r.student_id)
    pdf = render_receipt_pdf_bytes(
        receipt_number=r.receipt_number,
        student_name=(student.full_name if student else "") or "",
        hostel_name=hostel.name if hostel else "",
        room_number=room.room_number if room else "",
        deposit_amount=r.deposit_amount,
        platform_fee=r.platform_fee,
        total_paid=r.total_paid,
        payment_method=r.payment_method,
        status=r.status,
        issued_at=r.issued_at,
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{r.receipt_number}.pdf"'},
    )
