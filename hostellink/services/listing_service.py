import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from hostellink.core.errors import NotFound, Forbidden, ValidationFailed, RoomHasActiveBooking
from hostellink.core.identity import Identity, LANDLORD
from hostellink.db.uow import unit_of_work
from hostellink.models.booking import Booking, ACTIVE_STATUSES
from hostellink.models.hostel import Hostel
from hostellink.models.room import Room
from hostellink.services.audit_service import log_audit
from hostellink.services.room_service import active_booking_exists, get_room
from hostellink.services.plot_service import is_plot_verified, normalize_plot_number

logger = logging.getLogger(__name__)

MAX_IMAGES = 4
SORTS = ("recent", "distance", "price")


def create_hostel(db: Session, actor: Identity, *, name: str, location: str, plot_number: str,
                  rent_per_month: int, total_rooms: int, description: str | None = None,
                  distance_from_gate: float | None = None, images: list[str] | None = None) -> Hostel:
    actor.require(LANDLORD)
    if not (name or "").strip() or not (location or "").strip() or not (plot_number or "").strip():
        raise ValidationFailed("Please fill in all required fields")
    if rent_per_month < 0 or total_rooms < 0:
        raise ValidationFailed("Rent and room count must not be negative")

    pn = normalize_plot_number(plot_number)
    hostel = Hostel(
        id=str(uuid.uuid4()),
        landlord_id=actor.user_id,
        name=name.strip(),
        location=location.strip(),
        description=description,
        distance_from_gate=distance_from_gate,
        plot_number=pn,
        rent_per_month=rent_per_month,
        total_rooms=total_rooms,
        images=list(images or []),
        is_verified=is_plot_verified(db, pn),
    )
    with unit_of_work(db, "create_hostel"):
        db.add(hostel)
    db.refresh(hostel)
    logger.info("hostel %s listed by %s verified=%s", hostel.id, actor.user_id, hostel.is_verified)
    return hostel


def add_room(db: Session, actor: Identity, hostel_id: str, *, room_number: str, price_per_month: int,
             deposit_amount: int | None = None, description: str | None = None,
             images: list[str] | None = None) -> Room:
    actor.require(LANDLORD)
    hostel = get_hostel(db, hostel_id)
    if hostel.landlord_id != actor.user_id:
        raise Forbidden("Access denied")
    room_number = (room_number or "").strip()
    if not room_number or price_per_month <= 0:
        raise ValidationFailed("Please fill in all required fields")
    if deposit_amount is not None and deposit_amount <= 0:
        raise ValidationFailed("Deposit must be a positive amount")
    if len(images or []) > MAX_IMAGES:
        raise ValidationFailed(f"Maximum {MAX_IMAGES} images allowed")
    dup = db.query(Room.id).filter(Room.hostel_id == hostel_id, Room.room_number == room_number).first()
    if dup:
        raise ValidationFailed(f"Room {room_number} already exists in this hostel")

    room = Room(
        id=str(uuid.uuid4()),
        hostel_id=hostel_id,
        room_number=room_number,
        price_per_month=price_per_month,
        deposit_amount=deposit_amount,
        description=description,
        images=list(images or []),
        is_vacant=True,
    )
    with unit_of_work(db, "add_room"):
        db.add(room)
    db.refresh(room)
    return room


def _own_room(db: Session, actor: Identity, room_id: str) -> Room:
    actor.require(LANDLORD)
    room = get_room(db, room_id)
    hostel = db.get(Hostel, room.hostel_id)
    if not hostel or hostel.landlord_id != actor.user_id:
        raise Forbidden("Access denied")
    return room


def update_room(db: Session, actor: Identity, room_id: str, *, room_number: str | None = None,
                price_per_month: int | None = None, deposit_amount: int | None = None,
                description: str | None = None, images: list[str] | None = None) -> Room:
    """Edit a room's listing. Refused while a booking holds the room, since its
    amounts were snapshotted from these values."""
    room = _own_room(db, actor, room_id)
    values = {}
    if room_number is not None:
        room_number = room_number.strip()
        if not room_number:
            raise ValidationFailed("Please fill in all required fields")
        if room_number != room.room_number:
            dup = db.query(Room.id).filter(Room.hostel_id == room.hostel_id, Room.room_number == room_number).first()
            if dup:
                raise ValidationFailed(f"Room {room_number} already exists in this hostel")
        values["room_number"] = room_number
    if price_per_month is not None:
        if price_per_month <= 0:
            raise ValidationFailed("Price must be a positive amount")
        values["price_per_month"] = price_per_month
    if deposit_amount is not None:
        if deposit_amount <= 0:
            raise ValidationFailed("Deposit must be a positive amount")
        values["deposit_amount"] = deposit_amount
    if description is not None:
        values["description"] = description
    if images is not None:
        if len(images) > MAX_IMAGES:
            raise ValidationFailed(f"Maximum {MAX_IMAGES} images allowed")
        values["images"] = list(images)
    if not values:
        return room

    with unit_of_work(db, "update_room"):
        res = db.execute(
            update(Room)
            .where(Room.id == room_id, ~active_booking_exists(room_id))
            .values(updated_at=datetime.now(timezone.utc), **values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise RoomHasActiveBooking("Room has a booking in escrow and cannot be edited")
        log_audit(db, actor.user_id, "room.updated", "room", room_id, {"fields": sorted(values)})
    db.refresh(room)
    return room


def delete_room(db: Session, actor: Identity, room_id: str) -> None:
    """Remove a room. Finished bookings keep their history but lose the room link."""
    room = _own_room(db, actor, room_id)
    with unit_of_work(db, "delete_room"):
        db.execute(
            update(Booking)
            .where(Booking.room_id == room_id, Booking.escrow_status.notin_(ACTIVE_STATUSES))
            .values(room_id=None)
            .execution_options(synchronize_session=False)
        )
        res = db.execute(
            delete(Room)
            .where(Room.id == room_id, ~active_booking_exists(room_id))
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise RoomHasActiveBooking("Room has a booking in escrow and cannot be deleted")
        log_audit(db, actor.user_id, "room.deleted", "room", room_id, {"room_number": room.room_number})
    db.expunge(room)
    logger.info("room %s deleted by landlord %s", room_id, actor.user_id)


def delete_hostel(db: Session, actor: Identity, hostel_id: str) -> None:
    """Remove a listing and its rooms. Only possible before any booking was made
    on it: bookings, receipts and wallet history reference the hostel."""
    actor.require(LANDLORD)
    hostel = get_hostel(db, hostel_id)
    if hostel.landlord_id != actor.user_id:
        raise Forbidden("Access denied")

    booked = select(Booking.id).where(Booking.hostel_id == hostel_id).exists()
    with unit_of_work(db, "delete_hostel"):
        db.execute(
            delete(Room)
            .where(Room.hostel_id == hostel_id, ~booked)
            .execution_options(synchronize_session=False)
        )
        res = db.execute(
            delete(Hostel)
            .where(Hostel.id == hostel_id, ~booked)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            active = db.execute(
                select(Booking.id)
                .where(Booking.hostel_id == hostel_id, Booking.escrow_status.in_(ACTIVE_STATUSES))
                .limit(1)
            ).first()
            if active:
                raise RoomHasActiveBooking("Hostel has a booking in escrow and cannot be deleted")
            raise ValidationFailed("Hostel has past bookings and cannot be deleted")
        log_audit(db, actor.user_id, "hostel.deleted", "hostel", hostel_id, {"name": hostel.name})
    db.expunge(hostel)
    logger.info("hostel %s deleted by landlord %s", hostel_id, actor.user_id)


def get_hostel(db: Session, hostel_id: str) -> Hostel:
    h = db.get(Hostel, hostel_id)
    if not h:
        raise NotFound("Hostel not found")
    return h


def list_hostels(db: Session, landlord_id: str | None = None, search: str | None = None,
                 sort: str = "recent") -> list[Hostel]:
    """Browse listings. `search` matches name or location; `sort` is recent, distance or price."""
    if sort not in SORTS:
        raise ValidationFailed(f"sort must be one of {', '.join(SORTS)}")
    q = db.query(Hostel)
    if landlord_id:
        q = q.filter(Hostel.landlord_id == landlord_id)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        q = q.filter(Hostel.name.ilike(pattern) | Hostel.location.ilike(pattern))
    if sort == "distance":
        # unknown distances last
        q = q.order_by(Hostel.distance_from_gate.is_(None), Hostel.distance_from_gate.asc(), Hostel.created_at.desc())
    elif sort == "price":
        q = q.order_by(Hostel.rent_per_month.asc(), Hostel.created_at.desc())
    else:
        q = q.order_by(Hostel.created_at.desc())
    return q.all()


def vacant_room_counts(db: Session, hostel_ids: list[str]) -> dict[str, int]:
    if not hostel_ids:
        return {}
    rows = db.execute(
        select(Room.hostel_id, func.count(Room.id))
        .where(Room.hostel_id.in_(hostel_ids), Room.is_vacant.is_(True))
        .group_by(Room.hostel_id)
    ).all()
    return {hid: int(n) for hid, n in rows}


def list_rooms(db: Session, hostel_id: str) -> list[Room]:
    return db.query(Room).filter(Room.hostel_id == hostel_id).order_by(Room.room_number).all()
