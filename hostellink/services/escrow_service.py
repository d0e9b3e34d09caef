"""Escrow state machine for bookings.

    held_in_escrow --confirm--> released_to_landlord   (wallet credited with the deposit)
    held_in_escrow --cancel---> refunded_to_student    (room vacant again)
    held_in_escrow --dispute--> under_review
    under_review   --resolve--> released_to_landlord | refunded_to_student

released_to_landlord and refunded_to_student are terminal. Every transition
is one conditional UPDATE asserting the prior state, so a concurrent or
repeated action finds zero rows and is rejected instead of re-applying its
side effects. Side effects (wallet, room, receipt, audit) commit in the same
transaction as the state change.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from hostellink.core.config import settings
from hostellink.core.errors import NotFound, Forbidden, StaleTransition, ValidationFailed
from hostellink.core.identity import Identity, STUDENT, ADMIN
from hostellink.db.uow import unit_of_work
from hostellink.models.booking import (
    Booking, HELD_IN_ESCROW, RELEASED_TO_LANDLORD, REFUNDED_TO_STUDENT, UNDER_REVIEW,
)
from hostellink.models.hostel import Hostel
from hostellink.services import receipt_service, room_service, wallet_service
from hostellink.services.audit_service import log_audit

logger = logging.getLogger(__name__)

TRANSITIONS = {
    HELD_IN_ESCROW: (RELEASED_TO_LANDLORD, REFUNDED_TO_STUDENT, UNDER_REVIEW),
    UNDER_REVIEW: (RELEASED_TO_LANDLORD, REFUNDED_TO_STUDENT),
    RELEASED_TO_LANDLORD: (),
    REFUNDED_TO_STUDENT: (),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, ())


def _load_own_booking(db: Session, actor: Identity, booking_id: str) -> Booking:
    actor.require(STUDENT)
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFound("Booking not found")
    if b.student_id != actor.user_id:
        raise Forbidden("This booking belongs to another student")
    return b


def _transition(db: Session, booking: Booking, expected: str, target: str, **values) -> None:
    if not can_transition(expected, target):
        raise StaleTransition(f"Cannot move booking from {expected} to {target}")
    res = db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.escrow_status == expected)
        .values(escrow_status=target, **values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        logger.warning("stale transition booking=%s expected=%s target=%s", booking.id, expected, target)
        raise StaleTransition(booking_id=booking.id, target=target)


def _release(db: Session, booking: Booking) -> None:
    hostel = db.get(Hostel, booking.hostel_id)
    if not hostel:
        raise NotFound("Hostel not found")
    wallet_service.credit(
        db,
        landlord_id=hostel.landlord_id,
        amount=booking.deposit_amount,
        description=f"Deposit released for {hostel.name}",
        booking_id=booking.id,
    )
    receipt_service.set_receipt_status(db, booking.id, receipt_service.RELEASED)


def _refund(db: Session, booking: Booking) -> None:
    if booking.room_id:
        room_service.release_room(db, booking.room_id)
    receipt_service.set_receipt_status(db, booking.id, receipt_service.REFUNDED)


def confirm_room(db: Session, actor: Identity, booking_id: str) -> Booking:
    """Student confirms occupancy; the deposit (not the fee) goes to the landlord's wallet."""
    b = _load_own_booking(db, actor, booking_id)
    with unit_of_work(db, "confirm_room"):
        _transition(db, b, HELD_IN_ESCROW, RELEASED_TO_LANDLORD, confirmed_at=datetime.now(timezone.utc))
        _release(db, b)
        log_audit(db, actor.user_id, "booking.confirmed", "booking", b.id, {"deposit": b.deposit_amount})
    db.refresh(b)
    logger.info("booking %s released to landlord", b.id)
    return b


def cancel_booking(db: Session, actor: Identity, booking_id: str, reason: str | None = None) -> Booking:
    b = _load_own_booking(db, actor, booking_id)
    with unit_of_work(db, "cancel_booking"):
        _transition(
            db, b, HELD_IN_ESCROW, REFUNDED_TO_STUDENT,
            cancelled_at=datetime.now(timezone.utc),
            cancellation_reason=(reason or "").strip() or settings.DEFAULT_CANCELLATION_REASON,
            payment_status="refunded",
        )
        _refund(db, b)
        log_audit(db, actor.user_id, "booking.cancelled", "booking", b.id, {"room_id": b.room_id})
    db.refresh(b)
    logger.info("booking %s refunded to student", b.id)
    return b


def raise_dispute(db: Session, actor: Identity, booking_id: str, reason: str) -> Booking:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailed("Please describe the issue")
    b = _load_own_booking(db, actor, booking_id)
    with unit_of_work(db, "raise_dispute"):
        _transition(db, b, HELD_IN_ESCROW, UNDER_REVIEW, dispute_reason=reason)
        receipt_service.set_receipt_status(db, b.id, receipt_service.DISPUTED)
        log_audit(db, actor.user_id, "booking.disputed", "booking", b.id, {"reason": reason})
    db.refresh(b)
    logger.info("booking %s under review", b.id)
    return b


def resolve_dispute(db: Session, actor: Identity, booking_id: str, outcome: str, resolution: str) -> Booking:
    """Entry point for the external admin resolver: under_review -> released or refunded."""
    actor.require(ADMIN)
    if outcome not in (RELEASED_TO_LANDLORD, REFUNDED_TO_STUDENT):
        raise ValidationFailed("Outcome must be released_to_landlord or refunded_to_student")
    b = db.get(Booking, booking_id)
    if not b:
        raise NotFound("Booking not found")

    now = datetime.now(timezone.utc)
    with unit_of_work(db, "resolve_dispute"):
        if outcome == RELEASED_TO_LANDLORD:
            _transition(db, b, UNDER_REVIEW, outcome, admin_resolution=resolution, confirmed_at=now)
            _release(db, b)
        else:
            _transition(db, b, UNDER_REVIEW, outcome, admin_resolution=resolution,
                        cancelled_at=now, payment_status="refunded")
            _refund(db, b)
        log_audit(db, actor.user_id, "booking.dispute_resolved", "booking", b.id, {"outcome": outcome})
    db.refresh(b)
    logger.info("booking %s dispute resolved: %s", b.id, outcome)
    return b
