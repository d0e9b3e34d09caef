from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hostellink.db.session import get_db
from hostellink.models.hostel import Hostel
from hostellink.models.room import Room
from hostellink.schemas.hostel import HostelOut, RoomOut
from hostellink.services import listing_service

router = APIRouter(tags=["hostels"])


def room_out(r: Room) -> RoomOut:
    return RoomOut(
        id=r.id,
        hostelId=r.hostel_id,
        roomNumber=r.room_number,
        pricePerMonth=r.price_per_month,
        depositAmount=r.effective_deposit,
        isVacant=bool(r.is_vacant),
        description=r.description,
        images=list(r.images or []),
    )


def hostel_out(h: Hostel, rooms: list[Room] | None = None, vacant: int | None = None) -> HostelOut:
    if vacant is None:
        vacant = sum(1 for r in rooms if r.is_vacant) if rooms is not None else 0
    return HostelOut(
        id=h.id,
        landlordId=h.landlord_id,
        name=h.name,
        location=h.location,
        description=h.description,
        distanceFromGate=h.distance_from_gate,
        rentPerMonth=h.rent_per_month,
        totalRooms=h.total_rooms,
        images=list(h.images or []),
        isVerified=bool(h.is_verified),
        vacantRooms=vacant,
        fullyBooked=vacant == 0,
        rooms=[room_out(r) for r in rooms] if rooms is not None else None,
    )


@router.get("/hostels", response_model=list[HostelOut])
def list_hostels(search: str | None = None, sort: str = "recent", db: Session = Depends(get_db)):
    """Browse listings; `search` matches name or location, `sort` is recent, distance or price."""
    hostels = listing_service.list_hostels(db, search=search, sort=sort)
    vacant = listing_service.vacant_room_counts(db, [h.id for h in hostels])
    return [hostel_out(h, vacant=vacant.get(h.id, 0)) for h in hostels]


@router.get("/hostels/{hostel_id}", response_model=HostelOut)
def get_hostel(hostel_id: str, db: Session = Depends(get_db)):
    """Hostel detail with its rooms and their current vacancy."""
    h = listing_service.get_hostel(db, hostel_id)
    return hostel_out(h, listing_service.list_rooms(db, h.id))
