import logging
import uuid

from sqlalchemy.orm import Session

from hostellink.core.config import settings
from hostellink.core.errors import NotFound, Forbidden, PaymentFailed, ValidationFailed
from hostellink.core.identity import Identity, STUDENT, LANDLORD, ADMIN
from hostellink.db.uow import unit_of_work
from hostellink.models.booking import Booking, HELD_IN_ESCROW
from hostellink.models.hostel import Hostel
from hostellink.models.receipt import Receipt
from hostellink.models.user import User
from hostellink.services import room_service
from hostellink.services.audit_service import log_audit
from hostellink.services.email_service import send_booking_confirmation
from hostellink.services.payment_service import MobileMoneyProvider, get_payment_provider
from hostellink.services.receipt_service import issue_receipt

logger = logging.getLogger(__name__)


def create_booking(db: Session, actor: Identity, room_id: str, phone_number: str | None = None,
                   provider: MobileMoneyProvider | None = None) -> tuple[Booking, Receipt]:
    """Pay the deposit + platform fee and reserve the room in escrow.

    Vacancy is checked before the payment call and again, atomically, when the
    booking is written. When the payment succeeds but the booking cannot be
    stored (lost race, storage failure), the transaction id is logged for
    manual refund.
    """
    actor.require(STUDENT)
    room = room_service.get_room(db, room_id)
    hostel = db.get(Hostel, room.hostel_id)
    if not hostel:
        raise NotFound("Hostel not found")
    student = db.get(User, actor.user_id)
    if not student:
        raise NotFound("Student profile not found")

    phone = (phone_number or student.phone or "").strip()
    if not phone:
        raise ValidationFailed("A phone number is required for M-Pesa payment")

    room_service.check_vacancy(db, room.id)

    deposit = room.effective_deposit
    fee = settings.PLATFORM_FEE
    total = deposit + fee
    booking_id = str(uuid.uuid4())

    provider = provider or get_payment_provider()
    payment = provider.initiate(phone_number=phone, amount=total, booking_reference=booking_id)
    if not payment.success:
        raise PaymentFailed(payment.message or None)

    booking = Booking(
        id=booking_id,
        student_id=actor.user_id,
        hostel_id=hostel.id,
        deposit_amount=deposit,
        platform_fee=fee,
        payment_amount=total,
        total_paid=total,
        payment_status="completed",
        escrow_status=HELD_IN_ESCROW,
        mpesa_transaction_id=payment.transaction_id,
    )
    try:
        with unit_of_work(db, "create_booking"):
            room_service.reserve_room(db, room.id, booking)
            receipt = issue_receipt(db, booking)
            log_audit(db, actor.user_id, "booking.created", "booking", booking.id,
                      {"room_id": room.id, "total_paid": total, "mpesa": payment.transaction_id})
    except Exception as e:
        # the booking was not stored but the student has paid
        logger.warning("payment %s of %s captured but booking not stored (%s) room=%s student=%s; refund required",
                       payment.transaction_id, total, getattr(e, "code", type(e).__name__), room.id, actor.user_id)
        raise

    db.refresh(booking)
    db.refresh(receipt)
    logger.info("booking %s created room=%s total=%s receipt=%s", booking.id, room.id, total, receipt.receipt_number)

    if student.email:
        # Notification failure never fails the booking
        try:
            send_booking_confirmation(db, student.email, hostel.name, total, booking.id)
        except Exception:
            db.rollback()
            logger.exception("booking confirmation email failed for booking %s", booking.id)

    return booking, receipt


def get_booking(db: Session, actor: Identity, booking_id: str) -> Booking:
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFound("Booking not found")
    if actor.role == STUDENT and b.student_id != actor.user_id:
        raise Forbidden("This booking belongs to another student")
    if actor.role == LANDLORD:
        hostel = db.get(Hostel, b.hostel_id)
        if not hostel or hostel.landlord_id != actor.user_id:
            raise Forbidden("Access denied")
    return b


def list_student_bookings(db: Session, actor: Identity) -> list[Booking]:
    actor.require(STUDENT)
    return (
        db.query(Booking)
        .filter(Booking.student_id == actor.user_id)
        .order_by(Booking.booked_at.desc())
        .all()
    )


def list_landlord_bookings(db: Session, actor: Identity) -> list[Booking]:
    actor.require(LANDLORD)
    return (
        db.query(Booking)
        .join(Hostel, Hostel.id == Booking.hostel_id)
        .filter(Hostel.landlord_id == actor.user_id)
        .order_by(Booking.booked_at.desc())
        .all()
    )


def list_student_receipts(db: Session, actor: Identity) -> list[Receipt]:
    actor.require(STUDENT)
    return (
        db.query(Receipt)
        .filter(Receipt.student_id == actor.user_id)
        .order_by(Receipt.issued_at.desc())
        .all()
    )


def get_receipt_by_number(db: Session, actor: Identity, receipt_number: str) -> Receipt:
    r = db.query(Receipt).filter(Receipt.receipt_number == receipt_number).first()
    if not r:
        raise NotFound("Receipt not found")
    if actor.role != ADMIN and r.student_id != actor.user_id:
        raise Forbidden("Access denied")
    return r
