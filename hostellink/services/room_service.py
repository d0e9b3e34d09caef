"""Room availability: the vacancy flag is the per-room reservation mutex.

It is only ever flipped with conditional UPDATEs whose affected-row count
tells the caller whether it won. A partial unique index on active bookings
backs it up at the storage level.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hostellink.core.errors import NotFound, Forbidden, RoomAlreadyBooked, RoomHasActiveBooking
from hostellink.core.identity import Identity, LANDLORD
from hostellink.db.uow import unit_of_work
from hostellink.models.booking import Booking, ACTIVE_STATUSES, ACTIVE_ROOM_INDEX
from hostellink.models.hostel import Hostel
from hostellink.models.room import Room
from hostellink.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def get_room(db: Session, room_id: str) -> Room:
    room = db.get(Room, room_id)
    if not room:
        raise NotFound("Room not found")
    return room


def check_vacancy(db: Session, room_id: str) -> None:
    """Fresh read of the vacancy flag; the listing the student saw may be stale."""
    is_vacant = db.execute(select(Room.is_vacant).where(Room.id == room_id)).scalar_one_or_none()
    if is_vacant is None:
        raise NotFound("Room not found")
    if not is_vacant:
        raise RoomAlreadyBooked()


def reserve_room(db: Session, room_id: str, booking: Booking) -> Booking:
    """Claim the room and insert its booking in the caller's transaction.

    Exactly one of several concurrent callers sees rowcount == 1; the rest get
    RoomAlreadyBooked. The caller owns commit/rollback.
    """
    check_vacancy(db, room_id)
    res = db.execute(
        update(Room)
        .where(Room.id == room_id, Room.is_vacant.is_(True))
        .values(is_vacant=False, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        logger.warning("reservation lost race room=%s student=%s", room_id, booking.student_id)
        raise RoomAlreadyBooked("This room was just booked by another student")

    booking.room_id = room_id
    db.add(booking)
    try:
        db.flush()
    except IntegrityError as e:
        if not _violates_active_room_index(e):
            raise
        logger.warning("active booking index rejected room=%s: %s", room_id, e.orig)
        raise RoomAlreadyBooked("This room was just booked by another student") from e
    return booking


def _violates_active_room_index(e: IntegrityError) -> bool:
    # psycopg2 names the constraint; SQLite only reports the indexed column
    diag = getattr(e.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name == ACTIVE_ROOM_INDEX
    msg = str(e.orig)
    return ACTIVE_ROOM_INDEX in msg or "bookings.room_id" in msg


def release_room(db: Session, room_id: str) -> bool:
    res = db.execute(
        update(Room)
        .where(Room.id == room_id, Room.is_vacant.is_(False))
        .values(is_vacant=True, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


def active_booking_exists(room_id: str):
    """EXISTS clause: a held or under-review booking references the room."""
    return select(Booking.id).where(Booking.room_id == room_id, Booking.escrow_status.in_(ACTIVE_STATUSES)).exists()


def has_active_booking(db: Session, room_id: str) -> bool:
    q = select(Booking.id).where(Booking.room_id == room_id, Booking.escrow_status.in_(ACTIVE_STATUSES)).limit(1)
    return db.execute(q).first() is not None


def mark_room_vacant(db: Session, actor: Identity, room_id: str) -> Room:
    """Landlord override: put an occupied room back on the market."""
    actor.require(LANDLORD)
    room = get_room(db, room_id)
    hostel = db.get(Hostel, room.hostel_id)
    if not hostel or hostel.landlord_id != actor.user_id:
        raise Forbidden("Access denied")

    with unit_of_work(db, "mark_room_vacant"):
        res = db.execute(
            update(Room)
            .where(Room.id == room_id, Room.is_vacant.is_(False), ~active_booking_exists(room_id))
            .values(is_vacant=True, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0 and has_active_booking(db, room_id):
            raise RoomHasActiveBooking()
        if res.rowcount:
            log_audit(db, actor.user_id, "room.marked_vacant", "room", room_id)
    db.refresh(room)
    logger.info("room %s marked vacant by landlord %s", room_id, actor.user_id)
    return room
